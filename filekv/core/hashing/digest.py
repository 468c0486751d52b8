import hashlib

from filekv.core.ports.hasher import Hasher

DIGEST_BITS = 64
DIGEST_MASK = (1 << DIGEST_BITS) - 1


class Blake2bHasher(Hasher):
    """
    Stable 64-bit fingerprint of a key.

    Uses BLAKE2b truncated to 8 bytes, unkeyed, with a personalization
    string that carries the format version. The digest of a given key is
    identical across processes, restarts and platforms, so record files
    written by one run stay discoverable by the next one.

    Bumping VERSION changes every digest: existing stores would have to
    be migrated.
    """

    VERSION: int = 1

    def __init__(self) -> None:
        self._person = f"filekv.v{self.VERSION}".encode("ascii")

    def digest(self, key: bytes) -> int:
        h = hashlib.blake2b(key, digest_size=8, person=self._person)
        return int.from_bytes(h.digest(), "big")


class ProcessHasher(Hasher):
    """
    Digest based on the interpreter's built-in hash.

    `hash()` on bytes is salted per process (PYTHONHASHSEED), so digests
    are only stable for the lifetime of one process. Record files written
    by a previous run are orphaned unless the seed is pinned.
    """

    def digest(self, key: bytes) -> int:
        return hash(key) & DIGEST_MASK


def filename(digest: int) -> str:
    return str(digest)


def is_record_name(name: str) -> bool:
    return name.isdigit() and name.isascii()
