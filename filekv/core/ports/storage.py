from typing import Protocol, runtime_checkable

from filekv.core.models.lookup import Lookup


class Storage(Protocol):
    """
    Minimal asynchronous interface for a file-per-key store.

    A Storage implementation maps opaque byte keys to opaque byte values,
    one record file per key digest, under a single root directory. Every
    call is one filesystem round trip: there is no index, no cache and
    no partial access to a value.

    The interface does not prescribe ordering between concurrent calls
    on the same key. Implementations may provide stronger guarantees,
    but callers must not rely on anything beyond the behavior described
    here.
    """

    async def store(self, key: bytes, value: bytes) -> None:
        """
        Store `value` under `key`, fully replacing any prior value.

        The record file is created when it does not exist yet and
        replaced when it does. The write must be visible to subsequent
        calls to `retrieve` within the same Storage instance.
        """

    async def retrieve(self, key: bytes) -> bytes | None:
        """
        Return the value stored under `key`, or None if the key was never
        stored.

        Implementations must not raise for missing keys. Whether read
        failures raise or collapse into None depends on the backend.
        """

    async def lookup(self, key: bytes) -> Lookup:
        """
        Same as `retrieve`, but the outcome is a typed result so callers
        can tell absence (NotFound) from failure (Failed).
        """

    async def close(self) -> None:
        """
        Release the thread pools backing this Storage instance.

        After calling close(), the instance must not be used again. The
        store root and its record files are left on disk.
        """


@runtime_checkable
class DeletableStorage(Storage, Protocol):
    """
    Optional capability of a Storage that can forget keys.

    Engines whose record files do not identify their keys (digest-only
    file names) cannot delete one key safely and do not provide it.
    """

    async def delete(self, key: bytes) -> None:
        """
        Remove the value stored under `key`. Deleting a missing key must
        succeed silently; `retrieve(key)` returns None afterwards.
        """
