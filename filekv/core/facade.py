from filekv.core.errors import UnsupportedOperation
from filekv.core.models.lookup import Lookup
from filekv.core.ports.storage import DeletableStorage, Storage


def to_bytes(data: str | bytes) -> bytes:
    if isinstance(data, bytes):
        return data
    return data.encode("utf-8")


class FileKV:
    """
    Text-friendly front of a Storage: keys and values may be given as
    str (encoded as UTF-8) or bytes. Values are always returned as bytes.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    async def set(self, key: str | bytes, value: str | bytes) -> None:
        await self.storage.store(to_bytes(key), to_bytes(value))

    async def get(self, key: str | bytes) -> bytes | None:
        return await self.storage.retrieve(to_bytes(key))

    async def lookup(self, key: str | bytes) -> Lookup:
        return await self.storage.lookup(to_bytes(key))

    async def delete(self, key: str | bytes) -> None:
        if not isinstance(self.storage, DeletableStorage):
            raise UnsupportedOperation(
                f"{type(self.storage).__name__} does not support deletion"
            )
        await self.storage.delete(to_bytes(key))

    async def close(self) -> None:
        await self.storage.close()
