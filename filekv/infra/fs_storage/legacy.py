import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Self

from filekv.core.hashing.digest import ProcessHasher, filename
from filekv.core.models.lookup import Found, Lookup, NotFound
from filekv.core.ports.hasher import Hasher
from filekv.infra.fs_storage.backend import ensure_root


class LegacyFileStorage:
    """
    File-per-key store with the first, unhardened semantics.

    - the record file is named after the key digest only, and holds the
      raw value: two keys sharing a digest share a file, and the later
      write wins for both
    - the default digest is process-local, so records written by another
      process are not found again
    - a store checks whether the file exists, then truncates or creates
      it, then writes; concurrent stores and reads of one key interleave
      freely and a reader may observe an empty or partial value
    - every I/O failure is swallowed: a failed store is a no-op and a
      failed read looks like a missing key

    Kept to benchmark against and to exercise the legacy behavior.
    """

    def __init__(
        self,
        root: Path,
        hasher: Hasher | None = None,
        max_readers: int = 8,
        max_writers: int = 8,
    ) -> None:
        self._root = Path(root)
        self._hasher = hasher or ProcessHasher()
        self._read_pool = ThreadPoolExecutor(
            max_workers=max_readers, thread_name_prefix="filekv-legacy-read"
        )
        self._write_pool = ThreadPoolExecutor(
            max_workers=max_writers, thread_name_prefix="filekv-legacy-write"
        )
        self._logger = logging.getLogger("infra.fs_storage.legacy")

    @classmethod
    async def open(cls, root: str | Path, **kwargs: Any) -> Self:
        root = Path(root)
        await asyncio.to_thread(ensure_root, root, False)
        return cls(root, **kwargs)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: bytes) -> Path:
        return self._root / filename(self._hasher.digest(key))

    async def store(self, key: bytes, value: bytes) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            self._write_pool, self._sync_store, self.path_for(key), value
        )

    async def retrieve(self, key: bytes) -> bytes | None:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._read_pool, self._sync_retrieve, self.path_for(key)
        )

    async def lookup(self, key: bytes) -> Lookup:
        value = await self.retrieve(key)
        if value is None:
            return NotFound()
        return Found(value)

    async def close(self) -> None:
        def shutdown() -> None:
            self._read_pool.shutdown(wait=True)
            self._write_pool.shutdown(wait=True)

        await asyncio.to_thread(shutdown)

    def _sync_store(self, path: Path, value: bytes) -> None:
        try:
            if path.exists():
                with open(path, "r+b") as f:
                    f.truncate()
                    f.write(value)
            else:
                with open(path, "wb") as f:
                    f.write(value)
        except OSError as ex:
            self._logger.debug(f"Ignoring failed write of {path.name}: {ex}")

    def _sync_retrieve(self, path: Path) -> bytes | None:
        try:
            return path.read_bytes()
        except OSError as ex:
            self._logger.debug(f"Treating unreadable {path.name} as missing: {ex}")
            return None
