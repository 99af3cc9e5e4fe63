"""Opt-in loguru sinks for gcengine records.

Importing the package disables its loguru records. ``setup_logging`` turns
them back on and adds sinks that only see records from ``gcengine`` modules.
Loguru's global configuration is left alone, so a host application keeps its
own sinks and ``extra`` defaults.

Example:
    from gcengine.logging import LogConfig, setup_logging, teardown_logging

    handlers = setup_logging(LogConfig(level="DEBUG", file="gcengine.log"))
    try:
        ...
    finally:
        teardown_logging(handlers)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

PACKAGE = "gcengine"

logger.disable(PACKAGE)

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]

CONSOLE_FORMAT = (
    "<dim>{time:HH:mm:ss.SSS}</dim> "
    "<level>{level.name:<7}</level> "
    "<magenta>{extra[component]:>9}</magenta> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level.name:<7} {name}:{line} | {extra[component]} - {message}"


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Where gcengine records go.

    Attributes:
        level: Minimum level on stderr. The file always gets DEBUG and up.
        file: Log file path; no file sink when None.
        console: Write to stderr.
        rotation: Size or age at which the file rotates, e.g. "50 MB" or "1 day".
        retention: Rotated files kept.
    """

    level: LogLevel = "INFO"
    file: str | None = None
    console: bool = True
    rotation: str = "50 MB"
    retention: int = 10


def package_records(record: Record) -> bool:
    """Sink filter passing only gcengine records, each with a ``component``."""
    name = record["name"] or ""
    if name != PACKAGE and not name.startswith(f"{PACKAGE}."):
        return False
    # modules logging through the bare logger have no component bound
    record["extra"].setdefault("component", PACKAGE)
    return True


def setup_logging(config: LogConfig) -> list[int]:
    """Enable gcengine records and return the ids of the sinks added for them."""
    logger.enable(PACKAGE)
    sinks: list[int] = []

    if config.console:
        sinks.append(
            logger.add(sys.stderr, level=config.level, format=CONSOLE_FORMAT, filter=package_records, colorize=True)
        )

    if config.file:
        sinks.append(
            logger.add(
                config.file,
                level="DEBUG",
                format=FILE_FORMAT,
                filter=package_records,
                rotation=config.rotation,
                retention=config.retention,
                enqueue=True,
                diagnose=False,  # locals in tracebacks can hold bearer tokens
            )
        )

    return sinks


def teardown_logging(handler_ids: list[int]) -> None:
    """Remove the sinks added by ``setup_logging`` and silence gcengine again."""
    for handler_id in handler_ids:
        logger.remove(handler_id)
    logger.disable(PACKAGE)
