import argparse
import os
from functools import lru_cache
from pathlib import Path


@lru_cache
def get_cli_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="shardplan",
        description=(
            "Compute the partition plan of a MongoDB collection.\n\n"
            "The plan splits the collection into independent key ranges, each\n"
            "annotated with the hosts that serve it, so that a parallel engine\n"
            "can read the collection one partition per task."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a shardplan configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "Choose among: DEBUG, INFO, WARNING, ERROR, CRITICAL.\n\n"
            "DEBUG    → metadata discovery details.\n"
            "INFO     → selected strategy and plan size.\n"
            "WARNING  → fallbacks to degraded plans (default).\n"
            "ERROR    → only errors.\n"
            "CRITICAL → only critical failures.\n\n"
            "Example:\n"
            "  --log-level INFO"
        ),
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default="yaml",
        choices=["yaml", "json"],
        help="Output format of the partition plan (default: yaml)."
    )

    return parser.parse_args()


@lru_cache
def get_configfile() -> Path:
    args = get_cli_args()

    # Priority: CLI > ENV > default file in current working directory
    raw = args.config or os.getenv("SHARDPLANCONFIG")

    if raw is None:
        file = Path.cwd() / "shardplan.yaml"
    else:
        file = Path(raw)

    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the SHARDPLANCONFIG environment variable\n"
            "  - Or place a 'shardplan.yaml' file in the current working directory."
        )

    return file
