import errno


TRANSIENT_ERRNOS = frozenset({
    errno.EMFILE,
    errno.ENFILE,
    errno.EAGAIN,
    errno.EINTR,
    errno.EBUSY,
})


class FileKVError(Exception):
    """Base class for every error raised by the storage engine."""


class UnsupportedOperation(FileKVError):
    """The storage engine does not provide the requested operation."""


class StoreOpenError(FileKVError):
    """
    The store root could not be created and does not already exist.

    This is the only failure that is fatal: the bootstrap layer turns it
    into a process exit.
    """


class StorageIOError(FileKVError):
    """
    A read or write against a record file failed.

    `retryable` tells the caller whether the failure was transient
    (descriptor exhaustion, interrupted call, busy resource) and may
    succeed if attempted again later.
    """

    def __init__(self, message: str, retryable: bool, errno: int | None = None):
        super().__init__(message)
        self.retryable = retryable
        self.errno = errno


class RecordDecodeError(FileKVError):
    """A record file exists but its content is not a valid bucket."""


def classify(ex: OSError) -> bool:
    """Return True when the OS error is worth retrying."""
    return ex.errno in TRANSIENT_ERRNOS
