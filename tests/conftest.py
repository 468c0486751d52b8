import pytest
import pytest_asyncio
import yaml

from filekv.core.throttling.backoff import RetryPolicy
from filekv.infra.fs_storage.aiobackend import FileStorage
from filekv.infra.fs_storage.legacy import LegacyFileStorage
from filekv.infra.msgpack_serializer import MsgPackSerializer


@pytest.fixture
def serializer():
    return MsgPackSerializer()


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return RetryPolicy(initial=0.001, maximum=0.002, jitter=0, max_attempts=3)


@pytest_asyncio.fixture
async def storage(tmp_path, fast_retry):
    store = await FileStorage.open(tmp_path / "db", retry=fast_retry)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def legacy_storage(tmp_path):
    store = await LegacyFileStorage.open(tmp_path / "legacy")
    yield store
    await store.close()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    file = tmp_path / "filekv.yaml"

    data = {
        "storage": {
            "root": str(tmp_path / "data"),
            "mode": "legacy",
            "lock_shards": 16,
            "max_readers": 2,
            "max_writers": 3,
            "sync": True,
            "retry": {
                "initial": 0.01,
                "max_attempts": 2,
            },
        },
        "bench": {
            "write": True,
            "key_count": 100,
            "batch_size": 10,
            "concurrency": 4,
            "read_iterations": 5,
            "read_key": "7",
        },
    }

    file.write_text(yaml.dump(data))
    monkeypatch.setenv("TEST_FILEKVCONFIG", str(file))
    return file
