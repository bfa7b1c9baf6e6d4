"""
Logging setup for maintainer-script runs.

dpkg shows stderr to the administrator, so the console stays quiet:
warnings and errors only, one ``lapdev-bootstrap:`` prefixed line each.
When invoked from a maintainer script (DPKG_MAINTSCRIPT_NAME is set),
the prefix also names the script, e.g. ``lapdev-bootstrap(postinst):``.

Levels are resolved in precedence order:
    --debug / --verbose / --quiet  >  LAPDEV_BOOTSTRAP_LOG_LEVEL  >  WARNING

An unattended install leaves nothing on screen worth reading later, so
LAPDEV_BOOTSTRAP_LOG_FILE appends a full-detail copy to a file, at
LAPDEV_BOOTSTRAP_LOG_FILE_LEVEL (defaults to the console level).
"""

from __future__ import annotations

import logging
import logging.config
import os

ENV_LOG_LEVEL = "LAPDEV_BOOTSTRAP_LOG_LEVEL"
ENV_LOG_FILE = "LAPDEV_BOOTSTRAP_LOG_FILE"
ENV_LOG_FILE_LEVEL = "LAPDEV_BOOTSTRAP_LOG_FILE_LEVEL"
ENV_MAINTSCRIPT = "DPKG_MAINTSCRIPT_NAME"

_DETAIL_FMT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LOG_LEVEL, "WARNING")


def console_prefix() -> str:
    script = os.environ.get(ENV_MAINTSCRIPT)
    return f"lapdev-bootstrap({script}):" if script else "lapdev-bootstrap:"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers for this process.

    Unknown level names fall back to WARNING rather than failing the
    install.
    """
    console_level = _parse_level(level)

    # Below WARNING the operator asked for detail; show where it came from.
    if console_level < logging.WARNING:
        console_format = {"format": f"{console_prefix()} {_DETAIL_FMT}", "datefmt": "%H:%M:%S"}
    else:
        console_format = {"format": f"{console_prefix()} %(message)s"}

    config: dict = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": console_format,
            "file": {"format": _DETAIL_FMT, "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "console",
                "level": console_level,
            },
        },
        "root": {"handlers": ["console"], "level": console_level},
    }

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "encoding": "utf-8",
            "formatter": "file",
            "level": file_level,
        }
        config["root"]["handlers"].append("file")
        config["root"]["level"] = min(console_level, file_level)

    logging.config.dictConfig(config)
    # a closed stderr under dpkg must not abort the run
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
