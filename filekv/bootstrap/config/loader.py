import argparse
import os
from functools import lru_cache
from pathlib import Path


@lru_cache
def get_cli_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="filekv-bench",
        description=(
            "Benchmark a filekv store.\n\n"
            "filekv maps every key to a single file on disk. This tool opens\n"
            "(or creates) a store, optionally writes a large number of keys\n"
            "concurrently, then measures the average latency of reads."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a filekv configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "Choose among: DEBUG, INFO, WARNING, ERROR, CRITICAL.\n\n"
            "DEBUG    → per-batch progress and swallowed legacy errors.\n"
            "INFO     → benchmark phases (default).\n"
            "WARNING  → retries and failed writes only.\n"
        ),
    )

    return parser.parse_args()


def resolve_configfile(cli_path: str | None) -> Path | None:
    # Priority: CLI > ENV > default file in current working directory
    raw = cli_path or os.getenv("FILEKVCONFIG")

    if raw is None:
        file = Path.cwd() / "filekv.yaml"
        return file if file.is_file() else None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the FILEKVCONFIG environment variable\n"
            "  - Or place a 'filekv.yaml' file in the current working directory."
        )

    return file


@lru_cache
def get_configfile() -> Path | None:
    return resolve_configfile(get_cli_args().config)
