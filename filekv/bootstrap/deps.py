import json
from functools import lru_cache

from pydantic import ValidationError

from filekv.bootstrap.config.settings import FileKVConfig, StorageMode, StorageSettings
from filekv.core.facade import FileKV
from filekv.core.ports.storage import Storage
from filekv.infra.fs_storage.aiobackend import FileStorage
from filekv.infra.fs_storage.legacy import LegacyFileStorage


@lru_cache
def get_config() -> FileKVConfig:
    try:
        return FileKVConfig()
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))


async def open_storage(settings: StorageSettings) -> Storage:
    if settings.mode is StorageMode.LEGACY:
        return await LegacyFileStorage.open(
            settings.root,
            max_readers=settings.max_readers,
            max_writers=settings.max_writers,
        )

    return await FileStorage.open(
        settings.root,
        lock_shards=settings.lock_shards,
        max_readers=settings.max_readers,
        max_writers=settings.max_writers,
        sync=settings.sync,
        retry=settings.retry.to_policy(),
    )


async def get_kv(settings: StorageSettings) -> FileKV:
    return FileKV(await open_storage(settings))
