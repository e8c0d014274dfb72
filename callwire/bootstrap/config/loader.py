import argparse
import os
from functools import lru_cache
from pathlib import Path

DEFAULT_CONFIG_FILE = "callwire.yaml"
CONFIG_ENV = "CALLWIRE_CONFIG"


@lru_cache
def get_cli_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="callwire",
        description=(
            "Start a callwire server.\n\n"
            "callwire exposes registered Python callables over TCP. Clients call\n"
            "them by name with positional arguments and receive one response\n"
            "per call."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help=(
            f"Path to a callwire configuration file.\n"
            f"Defaults to ${CONFIG_ENV}, then ./{DEFAULT_CONFIG_FILE} if it exists."
        )
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity of the server.\n"
            "DEBUG    → connection lifecycle and procedure registration.\n"
            "INFO     → procedure table and one line per call (default).\n"
            "WARNING  → failed calls and framing errors only.\n"
        ),
    )

    return parser.parse_args()


def resolve_configfile(explicit: str | None) -> Path | None:
    # Priority: CLI > ENV > default file in current working directory
    raw = explicit or os.getenv(CONFIG_ENV)

    if raw is None:
        default = Path.cwd() / DEFAULT_CONFIG_FILE
        return default if default.is_file() else None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            f"  - Use --config <file.yaml>\n"
            f"  - Or set the {CONFIG_ENV} environment variable\n"
            f"  - Or place a '{DEFAULT_CONFIG_FILE}' file in the current working directory."
        )

    return file


@lru_cache
def get_configfile() -> Path | None:
    return resolve_configfile(get_cli_args().config)
