import os
from pathlib import Path

from filekv.bootstrap.config.settings import FileKVConfig


class FakeFileKVConfig(FileKVConfig):
    """FileKVConfig that never parses the command line of the test runner."""

    @classmethod
    def yaml_file(cls) -> Path | None:
        raw = os.environ.get("TEST_FILEKVCONFIG")
        return Path(raw) if raw else None
