import asyncio
import logging

from filekv.bootstrap.config.loader import get_cli_args
from filekv.bootstrap.config.settings import FileKVConfig
from filekv.bootstrap.deps import get_config, get_kv
from filekv.core.errors import StoreOpenError
from filekv.core.helpers.utils import setup_logging
from filekv.core.service.benchmark import BenchmarkService


async def run(config: FileKVConfig) -> None:
    logger = logging.getLogger("bootstrap.boot")
    bench = config.bench

    kv = await get_kv(config.storage)
    logger.info(
        f"Store opened at '{config.storage.root}' ({config.storage.mode} mode)"
    )

    try:
        service = BenchmarkService(kv)

        if bench.write:
            report = await service.write_keys(
                key_count=bench.key_count,
                batch_size=bench.batch_size,
                concurrency=bench.concurrency,
            )
            print(report.render())

        read_report = await service.read_latency(
            iterations=bench.read_iterations,
            read_key=bench.read_key,
        )
        print(read_report.render())
    finally:
        await kv.close()


def main():
    cli = get_cli_args()
    setup_logging(cli.log_level)
    config = get_config()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    try:
        loop.run_until_complete(run(config))
    except StoreOpenError as ex:
        raise SystemExit(f"[storage] {ex}")
    except KeyboardInterrupt:
        pass
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            loop.close()
