from typing import Protocol


class Hasher(Protocol):
    """
    Maps a key to a 64-bit digest used to name its record file.

    Implementations must be deterministic for equal keys. They are not
    required to be injective: two distinct keys may share a digest.
    """

    def digest(self, key: bytes) -> int:
        """Return an integer in [0, 2**64) for `key`."""
