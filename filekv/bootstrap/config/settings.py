from enum import StrEnum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from filekv.bootstrap.config.loader import get_configfile
from filekv.core.throttling.backoff import RetryPolicy


class StorageMode(StrEnum):
    HARDENED = "hardened"
    LEGACY = "legacy"


class RetrySettings(BaseModel):
    initial: Annotated[
        float,
        Field(
            description="Delay (in seconds) before the first retry of a transient failure.",
            default=0.005,
            gt=0
        )
    ]

    maximum: Annotated[
        float,
        Field(
            description="Upper bound (in seconds) of the delay between two retries.",
            default=1.0,
            gt=0
        )
    ]

    factor: Annotated[
        float,
        Field(
            description="Growth factor applied to the delay after each retry.",
            default=2.0,
            ge=1
        )
    ]

    jitter: Annotated[
        float,
        Field(
            description="Maximum random jitter (in seconds) added to each delay.",
            default=0.005,
            ge=0
        )
    ]

    max_attempts: Annotated[
        int,
        Field(
            description=(
                "Maximum number of attempts of a single store or retrieve when it\n"
                "fails for a transient reason (too many open files, interrupted\n"
                "call, busy resource). Permanent failures are never retried."
            ),
            default=5,
            ge=1
        )
    ]

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            initial=self.initial,
            maximum=self.maximum,
            factor=self.factor,
            jitter=self.jitter,
            max_attempts=self.max_attempts,
        )


class StorageSettings(BaseModel):
    root: Annotated[
        Path,
        Field(
            description=(
                "Directory holding one record file per key digest.\n"
                "It is created at startup if missing and never deleted."
            ),
            default=Path("test")
        )
    ]

    mode: Annotated[
        StorageMode,
        Field(
            description=(
                "Storage engine.\n"
                "'hardened': key-verified buckets, atomic replace, per-digest locks,\n"
                "explicit errors.\n"
                "'legacy': digest-only file names, raw values, no locking, errors\n"
                "swallowed. Colliding keys overwrite each other."
            ),
            default=StorageMode.HARDENED
        )
    ]

    lock_shards: Annotated[
        int,
        Field(
            description="Number of per-digest lock shards (hardened engine only).",
            default=1024
        )
    ]

    max_readers: Annotated[
        int,
        Field(
            description="Worker threads serving record reads.",
            default=8
        )
    ]

    max_writers: Annotated[
        int,
        Field(
            description="Worker threads serving record writes.",
            default=8
        )
    ]

    sync: Annotated[
        bool,
        Field(
            description="fsync every record before it replaces the previous one (hardened engine only).",
            default=False
        )
    ]

    retry: Annotated[
        RetrySettings,
        Field(
            description="Retry policy for transient I/O failures (hardened engine only).",
            default_factory=RetrySettings
        )
    ]

    @field_validator("lock_shards", "max_readers", "max_writers")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


class BenchSettings(BaseModel):
    write: Annotated[
        bool,
        Field(
            description="Run the bulk-write benchmark before the read benchmark.",
            default=False
        )
    ]

    key_count: Annotated[
        int,
        Field(
            description="Number of keys written by the bulk-write benchmark.",
            default=5_000_000
        )
    ]

    batch_size: Annotated[
        int,
        Field(
            description=(
                "Number of write tasks spawned before waiting for all of them.\n"
                "Bounds the number of task handles kept in memory."
            ),
            default=10_000
        )
    ]

    concurrency: Annotated[
        int,
        Field(
            description=(
                "Maximum number of writes in flight at once.\n"
                "Keep it below the process open-file limit."
            ),
            default=512
        )
    ]

    read_iterations: Annotated[
        int,
        Field(
            description="Number of timed reads of the read key.",
            default=99_000
        )
    ]

    read_key: Annotated[
        str,
        Field(
            description="Key read repeatedly by the latency benchmark.",
            default="10000"
        )
    ]

    @field_validator("batch_size", "concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("key_count", "read_iterations")
    @classmethod
    def validate_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v


class FileKVConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FILEKV_",
        env_nested_delimiter="__",
        extra="ignore"
    )

    storage: Annotated[
        StorageSettings,
        Field(
            description=(
                "Storage engine configuration.\n"
                "Defines where record files live and how the engine reads,\n"
                "writes and serializes access to them."
            ),
            default_factory=StorageSettings
        )
    ]

    bench: Annotated[
        BenchSettings,
        Field(
            description=(
                "Benchmark harness configuration.\n"
                "Controls the optional bulk-write run and the read latency run."
            ),
            default_factory=BenchSettings
        )
    ]

    @classmethod
    def yaml_file(cls) -> Path | None:
        return get_configfile()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=cls.yaml_file()),
        )
