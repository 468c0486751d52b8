import pytest

from filekv.core.facade import FileKV
from filekv.core.models.report import ReadReport, WriteReport
from filekv.core.service.benchmark import BenchmarkService
from tests.fake.fake_storage import FakeStorage


@pytest.mark.ut
@pytest.mark.asyncio
async def test_write_keys_bounded_by_concurrency():
    storage = FakeStorage(delay=0.002)
    service = BenchmarkService(FileKV(storage))

    report = await service.write_keys(key_count=100, batch_size=30, concurrency=4)

    assert report.key_count == 100
    assert report.failed == 0
    assert report.peak_in_flight <= 4
    assert storage.peak_active <= 4
    assert storage.store_calls == 100
    assert storage.data == {str(i).encode(): str(i).encode() for i in range(100)}


@pytest.mark.ut
@pytest.mark.asyncio
async def test_failed_writes_are_counted_not_fatal():
    storage = FakeStorage(fail_keys={b"3", b"7"})
    service = BenchmarkService(FileKV(storage))

    report = await service.write_keys(key_count=10, batch_size=4, concurrency=2)

    assert report.failed == 2
    assert len(storage.data) == 8
    assert b"3" not in storage.data


@pytest.mark.ut
@pytest.mark.asyncio
async def test_write_keys_rejects_bad_batch_size():
    service = BenchmarkService(FileKV(FakeStorage()))
    with pytest.raises(ValueError):
        await service.write_keys(key_count=10, batch_size=0, concurrency=2)


@pytest.mark.ut
@pytest.mark.asyncio
async def test_write_zero_keys():
    storage = FakeStorage()
    report = await BenchmarkService(FileKV(storage)).write_keys(0, 10, 2)
    assert report.key_count == 0
    assert storage.store_calls == 0


@pytest.mark.ut
@pytest.mark.asyncio
async def test_read_latency_counts_hits():
    storage = FakeStorage()
    kv = FileKV(storage)
    await kv.set("10000", "10000")
    service = BenchmarkService(kv)

    report = await service.read_latency(iterations=25, read_key="10000")
    assert report.iterations == 25
    assert report.hits == 25
    assert storage.retrieve_calls == 25

    missing = await service.read_latency(iterations=5, read_key="nope")
    assert missing.hits == 0


@pytest.mark.ut
def test_read_report_render():
    assert ReadReport(iterations=0, total=0.0, hits=0).render() == "No operations were performed."

    report = ReadReport(iterations=4, total=0.5, hits=4)
    assert report.average_us == 125_000
    assert report.render() == "Average time taken: 125000 microseconds"


@pytest.mark.ut
def test_write_report_render():
    report = WriteReport(key_count=10, failed=1, elapsed=1.5, peak_in_flight=3)
    assert report.render() == "Written 10 keys in 1500 ms (1 failed, peak 3 in flight)"
