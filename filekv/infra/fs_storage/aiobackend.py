import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, AsyncIterator, Self

from filekv.core.errors import RecordDecodeError, StorageIOError
from filekv.core.hashing.digest import Blake2bHasher, filename
from filekv.core.helpers.lock import ShardedLock
from filekv.core.models.lookup import Failed, Found, Lookup, NotFound
from filekv.core.ports.hasher import Hasher
from filekv.core.ports.serializer import Serializer
from filekv.core.storage.codec import BucketCodec
from filekv.core.throttling.backoff import RetryPolicy
from filekv.infra.fs_storage.backend import BucketBackend, ensure_root
from filekv.infra.msgpack_serializer import MsgPackSerializer


class FileStorage:
    """
    Hardened file-per-key store.

    Each key is hashed to a 64-bit digest naming a record file under the
    root. The record holds a bucket of (key, value) pairs, so colliding
    keys live side by side instead of overwriting each other.

    Blocking file I/O is offloaded to two thread pools (readers and
    writers). Operations touching the same digest are serialized through
    a sharded readers-writer lock: stores and deletes are exclusive,
    reads of one shard run concurrently. Records are replaced atomically.

    Read and write failures are surfaced as StorageIOError (transient
    ones retried first) or RecordDecodeError; absence is returned as
    None and is never an error.
    """

    def __init__(
        self,
        root: Path,
        hasher: Hasher | None = None,
        serializer: Serializer | None = None,
        lock_shards: int = 1024,
        max_readers: int = 8,
        max_writers: int = 8,
        sync: bool = False,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._root = Path(root)
        self._hasher = hasher or Blake2bHasher()
        self._codec = BucketCodec(serializer or MsgPackSerializer())
        self._backend = BucketBackend(self._root, self._codec, sync=sync)
        self._locks = ShardedLock(lock_shards)
        self._retry = retry or RetryPolicy()
        self._read_pool = ThreadPoolExecutor(
            max_workers=max_readers, thread_name_prefix="filekv-read"
        )
        self._write_pool = ThreadPoolExecutor(
            max_workers=max_writers, thread_name_prefix="filekv-write"
        )
        self._logger = logging.getLogger("infra.fs_storage")

    @classmethod
    async def open(cls, root: str | Path, **kwargs: Any) -> Self:
        """
        Ensure the root directory exists and return a store bound to it.

        Opening an existing root is idempotent and keeps its records.
        Raises StoreOpenError when the root cannot be created.
        """
        root = Path(root)
        await asyncio.to_thread(ensure_root, root, True)
        return cls(root, **kwargs)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: bytes) -> Path:
        return self._root / filename(self._hasher.digest(key))

    async def store(self, key: bytes, value: bytes) -> None:
        digest = self._hasher.digest(key)
        path = self._root / filename(digest)

        async def attempt() -> None:
            async with self._locks.write(digest):
                await self._run(self._write_pool, self._backend.put, path, key, value)

        await self._retry.run(attempt)

    async def put_many(self, items: list[tuple[bytes, bytes]]) -> None:
        """
        Store several pairs, rewriting each record file once.

        Pairs are grouped by digest; within a group, the last pair for a
        key wins. Groups are written concurrently.
        """
        groups: dict[int, dict[bytes, bytes]] = {}
        for key, value in items:
            groups.setdefault(self._hasher.digest(key), {})[key] = value

        async def write_group(digest: int, entries: dict[bytes, bytes]) -> None:
            path = self._root / filename(digest)

            async def attempt() -> None:
                async with self._locks.write(digest):
                    await self._run(
                        self._write_pool, self._backend.put_many, path, entries
                    )

            await self._retry.run(attempt)

        await asyncio.gather(*(
            write_group(digest, entries) for digest, entries in groups.items()
        ))

    async def retrieve(self, key: bytes) -> bytes | None:
        digest = self._hasher.digest(key)
        path = self._root / filename(digest)

        async def attempt() -> bytes | None:
            async with self._locks.read(digest):
                return await self._run(self._read_pool, self._backend.get, path, key)

        return await self._retry.run(attempt)

    async def lookup(self, key: bytes) -> Lookup:
        try:
            value = await self.retrieve(key)
        except StorageIOError as ex:
            self._logger.warning(f"Lookup failed: {ex}")
            return Failed(reason=str(ex), retryable=ex.retryable)
        except RecordDecodeError as ex:
            self._logger.warning(f"Lookup failed: {ex}")
            return Failed(reason=str(ex), retryable=False)

        if value is None:
            return NotFound()
        return Found(value)

    async def delete(self, key: bytes) -> None:
        """
        Remove `key` from its record. Deleting a missing key succeeds
        silently; the record file is unlinked once its bucket is empty.
        """
        digest = self._hasher.digest(key)
        path = self._root / filename(digest)

        async def attempt() -> bool:
            async with self._locks.write(digest):
                return await self._run(
                    self._write_pool, self._backend.delete, path, key
                )

        await self._retry.run(attempt)

    async def iter(self, batch_size: int = 1024) -> AsyncIterator[tuple[bytes, bytes]]:
        """
        Stream every stored (key, value) pair, in no particular order.

        The record listing is taken once; record files are then read in
        batches of `batch_size` inside a worker thread. Records written
        after the listing are not visited; records deleted meanwhile are
        skipped.
        """
        if batch_size <= 0:
            return

        names = await self._run(self._read_pool, self._backend.list_records)

        for start in range(0, len(names), batch_size):
            batch = await self._run(
                self._read_pool,
                self._backend.read_records,
                names[start:start + batch_size],
            )
            for key, value in batch:
                yield key, value

    async def close(self) -> None:
        def shutdown() -> None:
            self._read_pool.shutdown(wait=True)
            self._write_pool.shutdown(wait=True)

        await asyncio.to_thread(shutdown)

    @staticmethod
    async def _run(pool: ThreadPoolExecutor, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(pool, fn, *args)
