from typing import Protocol, Any


class Serializer(Protocol):
    """
    Defines the interface for encoding/decoding record file content.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - safe against malformed input
    """

    def serialize(self, obj: Any) -> bytes:
        """Encode a Python object into bytes suitable for a record file."""

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes read from a record file into a Python object."""
