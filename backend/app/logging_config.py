"""
Logging setup for the publishing service.

Environment variables:
- LOG_LEVEL: root level (default INFO)
- LOG_FORMAT: "structured" or "simple" (default structured)
- LOG_LEVEL_UPLOADER / _PIPELINE / _REPOSITORY / _VIEWS: per-module override
"""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.config import Settings


# Settings suffix -> logger that the override applies to
MODULE_LOGGERS = {
    "uploader": "app.services.asset_uploader",
    "pipeline": "app.services.pipeline",
    "repository": "app.services.concept_repository",
    "views": "app.services.view_counter",
}

# Logger name prefix -> short form shown in structured output
NAME_PREFIXES = (
    ("app.services.stores.", "stores."),
    ("app.services.", ""),
    ("app.api.", "api."),
    ("app.", ""),
)

# Third-party loggers capped at WARNING
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "python_multipart")


def short_name(name: str) -> str:
    """Strip the package prefix from a logger name."""
    for prefix, replacement in NAME_PREFIXES:
        if name.startswith(prefix):
            return replacement + name[len(prefix):]
    return name


class StructuredFormatter(logging.Formatter):
    """
    One line per record: timestamp | level | logger | message

    Tracebacks follow on the next lines.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = " | ".join((
            self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            f"{record.levelname:8}",
            f"{short_name(record.name):24}",
            record.getMessage(),
        ))
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "structured":
        return StructuredFormatter()
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def setup_logging(settings: "Settings") -> None:
    """
    Install a single stdout handler on the root logger.

    Safe to call more than once; previous handlers are replaced.

    Args:
        settings: Application settings with log configuration
    """
    root_level = _level(settings.log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(settings.log_format))
    handler.setLevel(root_level)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    root.addHandler(handler)

    for key, logger_name in MODULE_LOGGERS.items():
        override = getattr(settings, f"log_level_{key}", None)
        if override:
            logging.getLogger(logger_name).setLevel(_level(override, root_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
