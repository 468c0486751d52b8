import logging
import time

from filekv.core.facade import FileKV
from filekv.core.helpers.spawn import TaskSpawner
from filekv.core.models.report import ReadReport, WriteReport


class BenchmarkService:
    """
    Drives the store under load and measures it.

    The bulk writer issues one store task per key through an admission
    gate of `concurrency` slots and drains them every `batch_size`
    keys, which bounds both the number of concurrent file operations
    and the number of task handles kept alive. The read run times
    sequential reads of a single key.
    """

    def __init__(self, kv: FileKV) -> None:
        self._kv = kv
        self._logger = logging.getLogger("core.service.benchmark")

    async def write_keys(
        self,
        key_count: int,
        batch_size: int,
        concurrency: int,
    ) -> WriteReport:
        if batch_size <= 0:
            raise ValueError("batch_size must be a positive integer")

        spawner = TaskSpawner(limit=concurrency)
        self._logger.info(
            f"Writing {key_count} keys (batch={batch_size}, "
            f"concurrency={concurrency})"
        )

        start = time.perf_counter()
        for batch_start in range(0, key_count, batch_size):
            batch_end = min(batch_start + batch_size, key_count)
            for i in range(batch_start, batch_end):
                key = str(i)
                await spawner.spawn(self._kv.set(key, key))

            await spawner.drain()
            self._logger.debug(f"Batch ending at key {batch_end} drained")

        elapsed = time.perf_counter() - start

        if spawner.failed:
            self._logger.warning(f"{spawner.failed}/{key_count} writes failed")

        return WriteReport(
            key_count=key_count,
            failed=spawner.failed,
            elapsed=elapsed,
            peak_in_flight=spawner.peak_in_flight,
        )

    async def read_latency(self, iterations: int, read_key: str) -> ReadReport:
        total = 0.0
        hits = 0

        for _ in range(iterations):
            start = time.perf_counter()
            value = await self._kv.get(read_key)
            total += time.perf_counter() - start

            if value is not None:
                hits += 1

        if iterations and not hits:
            self._logger.warning(f"Read key {read_key!r} was never found")

        return ReadReport(iterations=iterations, total=total, hits=hits)
