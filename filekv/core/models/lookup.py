from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Found:
    value: bytes


@dataclass(frozen=True, slots=True)
class NotFound:
    pass


@dataclass(frozen=True, slots=True)
class Failed:
    """
    The record exists (or may exist) but could not be read.

    Distinguishes "key never existed" from "key is currently unreadable".
    """
    reason: str
    retryable: bool


Lookup = Found | NotFound | Failed
