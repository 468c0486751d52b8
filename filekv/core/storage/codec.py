from typing import Any

from filekv.core.errors import RecordDecodeError
from filekv.core.ports.serializer import Serializer


class BucketCodec:
    """
    Encodes the content of a hardened record file.

    A record file is named after a digest, and several keys may share a
    digest. The file therefore holds a bucket listing every key that maps
    to it, each alongside its value:

        bucket = {"v": FORMAT_VERSION, "entries": [[key, value], ...]}

    Keys are compared byte for byte on read, which makes the key to value
    mapping injective even when digests collide.
    """

    FORMAT_VERSION: int = 1

    def __init__(self, serializer: Serializer) -> None:
        self._serializer = serializer

    def encode(self, entries: dict[bytes, bytes]) -> bytes:
        return self._serializer.serialize({
            "v": self.FORMAT_VERSION,
            "entries": [[key, value] for key, value in entries.items()],
        })

    def decode(self, data: bytes) -> dict[bytes, bytes]:
        try:
            doc = self._serializer.deserialize(data)
        except Exception as ex:   # noqa
            raise RecordDecodeError(f"Unreadable bucket: {ex}") from ex

        return self._validate(doc)

    def _validate(self, doc: Any) -> dict[bytes, bytes]:
        if not isinstance(doc, dict):
            raise RecordDecodeError("Bucket is not a map")

        version = doc.get("v")
        if version != self.FORMAT_VERSION:
            raise RecordDecodeError(f"Unsupported bucket version: {version!r}")

        raw_entries = doc.get("entries")
        if not isinstance(raw_entries, list):
            raise RecordDecodeError("Bucket entries are missing")

        entries: dict[bytes, bytes] = {}
        for item in raw_entries:
            if (
                not isinstance(item, list)
                or len(item) != 2
                or not isinstance(item[0], bytes)
                or not isinstance(item[1], bytes)
            ):
                raise RecordDecodeError(f"Malformed bucket entry: {item!r}")

            key, value = item
            entries[key] = value

        return entries
