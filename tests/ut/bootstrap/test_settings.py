from pathlib import Path

import pytest
from pydantic import ValidationError

from filekv.bootstrap.config.loader import resolve_configfile
from filekv.bootstrap.config.settings import StorageMode
from tests.helpers import FakeFileKVConfig


@pytest.fixture
def no_config_file(monkeypatch):
    monkeypatch.delenv("TEST_FILEKVCONFIG", raising=False)


@pytest.mark.ut
def test_defaults(no_config_file):
    config = FakeFileKVConfig()

    assert config.storage.root == Path("test")
    assert config.storage.mode is StorageMode.HARDENED
    assert config.storage.lock_shards == 1024
    assert config.storage.sync is False
    assert config.storage.retry.max_attempts == 5
    assert config.bench.write is False
    assert config.bench.key_count == 5_000_000
    assert config.bench.read_iterations == 99_000
    assert config.bench.read_key == "10000"


@pytest.mark.ut
def test_yaml_file(config_file, tmp_path):
    config = FakeFileKVConfig()

    assert config.storage.root == tmp_path / "data"
    assert config.storage.mode is StorageMode.LEGACY
    assert config.storage.lock_shards == 16
    assert config.storage.max_writers == 3
    assert config.storage.sync is True
    assert config.storage.retry.initial == 0.01
    assert config.storage.retry.max_attempts == 2
    assert config.bench.write is True
    assert config.bench.batch_size == 10
    assert config.bench.read_key == "7"


@pytest.mark.ut
def test_env_overrides_yaml(config_file, monkeypatch):
    monkeypatch.setenv("FILEKV_STORAGE__MODE", "hardened")
    monkeypatch.setenv("FILEKV_BENCH__CONCURRENCY", "64")

    config = FakeFileKVConfig()
    assert config.storage.mode is StorageMode.HARDENED
    assert config.bench.concurrency == 64
    assert config.bench.batch_size == 10


@pytest.mark.ut
def test_init_kwargs_win(no_config_file, tmp_path):
    config = FakeFileKVConfig(storage={"root": str(tmp_path)})
    assert config.storage.root == tmp_path


@pytest.mark.ut
@pytest.mark.parametrize(
    "overrides",
    [
        {"storage": {"lock_shards": 0}},
        {"storage": {"max_readers": -1}},
        {"storage": {"mode": "turbo"}},
        {"storage": {"retry": {"max_attempts": 0}}},
        {"bench": {"batch_size": 0}},
        {"bench": {"concurrency": 0}},
        {"bench": {"key_count": -5}},
    ],
)
def test_invalid_values(no_config_file, overrides):
    with pytest.raises(ValidationError):
        FakeFileKVConfig(**overrides)


@pytest.mark.ut
def test_retry_settings_to_policy(no_config_file):
    config = FakeFileKVConfig(storage={"retry": {"initial": 0.1, "max_attempts": 7}})
    policy = config.storage.retry.to_policy()
    assert policy.initial == 0.1
    assert policy.max_attempts == 7


@pytest.mark.ut
def test_resolve_configfile_explicit_missing(tmp_path):
    with pytest.raises(SystemExit):
        resolve_configfile(str(tmp_path / "missing.yaml"))


@pytest.mark.ut
def test_resolve_configfile_explicit(tmp_path):
    file = tmp_path / "conf.yaml"
    file.write_text("storage: {}\n")
    assert resolve_configfile(str(file)) == file


@pytest.mark.ut
def test_resolve_configfile_env(tmp_path, monkeypatch):
    file = tmp_path / "conf.yaml"
    file.write_text("storage: {}\n")
    monkeypatch.setenv("FILEKVCONFIG", str(file))
    assert resolve_configfile(None) == file


@pytest.mark.ut
def test_resolve_configfile_default(tmp_path, monkeypatch):
    monkeypatch.delenv("FILEKVCONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    assert resolve_configfile(None) is None

    (tmp_path / "filekv.yaml").write_text("storage: {}\n")
    assert resolve_configfile(None) == tmp_path / "filekv.yaml"
