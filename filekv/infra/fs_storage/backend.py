import contextlib
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from filekv.core.errors import StorageIOError, StoreOpenError, classify
from filekv.core.hashing.digest import is_record_name
from filekv.core.storage.codec import BucketCodec

RECORD_MODE = 0o666


def current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def ensure_root(root: Path, parents: bool = True) -> None:
    """
    Create the store root if it does not exist yet.

    An existing directory is accepted as is, records included. Any other
    failure (permission denied, missing parent, root is a regular file)
    is raised as StoreOpenError.
    """
    try:
        root.mkdir(parents=parents, exist_ok=True)
    except OSError as ex:
        raise StoreOpenError(f"Cannot create store root '{root}': {ex}") from ex


@contextlib.contextmanager
def translate_os_errors(action: str, path: Path) -> Iterator[None]:
    try:
        yield
    except OSError as ex:
        raise StorageIOError(
            f"Cannot {action} record {path.name}: {ex.strerror or ex}",
            retryable=classify(ex),
            errno=ex.errno,
        ) from ex


class BucketBackend:
    """
    Synchronous record file operations of the hardened store.

    Every method performs blocking filesystem calls and is meant to run
    in a worker thread. Callers are responsible for serializing access
    to the same record file; the backend itself keeps no state besides
    the root and codec.

    Writes never modify a record file in place: the new bucket is
    written to a temporary file in the root and renamed over the record,
    so a reader sees either the previous bucket or the new one, never a
    truncated or partial file.
    """

    TMP_SUFFIX = ".tmp"

    def __init__(self, root: Path, codec: BucketCodec, sync: bool = False) -> None:
        self._root = root
        self._codec = codec
        self._sync = sync
        self._mode = RECORD_MODE & ~current_umask()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def mode(self) -> int:
        """Permission bits of record files: 0o666 minus the process umask."""
        return self._mode

    def get(self, path: Path, key: bytes) -> bytes | None:
        with translate_os_errors("read", path):
            return self.read_bucket(path).get(key)

    def put(self, path: Path, key: bytes, value: bytes) -> None:
        self.put_many(path, {key: value})

    def put_many(self, path: Path, items: dict[bytes, bytes]) -> None:
        with translate_os_errors("write", path):
            entries = self.read_bucket(path)
            entries.update(items)
            self._write_atomic(path, self._codec.encode(entries))

    def delete(self, path: Path, key: bytes) -> bool:
        with translate_os_errors("delete", path):
            entries = self.read_bucket(path)
            if key not in entries:
                return False

            del entries[key]
            if entries:
                self._write_atomic(path, self._codec.encode(entries))
            else:
                path.unlink(missing_ok=True)

            return True

    def read_bucket(self, path: Path) -> dict[bytes, bytes]:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return {}

        return self._codec.decode(data)

    def list_records(self) -> list[str]:
        """Names of the record files currently under the root."""
        with translate_os_errors("list", self._root), os.scandir(self._root) as it:
            return [
                entry.name for entry in it
                if is_record_name(entry.name) and entry.is_file()
            ]

    def read_records(self, names: list[str]) -> list[tuple[bytes, bytes]]:
        items: list[tuple[bytes, bytes]] = []
        for name in names:
            path = self._root / name
            with translate_os_errors("read", path):
                items.extend(self.read_bucket(path).items())
        return items

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp = tempfile.mkstemp(
            dir=self._root,
            prefix=f".{path.name}.",
            suffix=self.TMP_SUFFIX,
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                if self._sync:
                    f.flush()
                    os.fsync(f.fileno())
            os.chmod(tmp, self._mode)
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise
