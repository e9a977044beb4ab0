"""
Logging setup for fraktal.

All library loggers live under the "fraktal" namespace, e.g.
"fraktal.firefly.stream" for the WebSocket consumer and
"fraktal.services.PackageService" for the package service. Levels can be
tuned per subsystem with a spec such as "firefly.stream=DEBUG,events=WARNING"
(FRAKTAL_LOG_LEVELS). Production deployments log one JSON object per line.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fraktal.core.config import Config

LOGGER_NAME = "fraktal"

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def parse_module_levels(spec: str | None) -> dict[str, str]:
    """
    Parse "firefly.stream=DEBUG,events=WARNING" into a module -> level map.

    Raises:
        ValueError: If an entry is not `module=LEVEL` or names an unknown level
    """
    levels: dict[str, str] = {}
    for entry in (spec or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        module, sep, level = entry.partition("=")
        level = level.strip().upper()
        if not sep or not module.strip() or not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level entry: {entry!r}")
        levels[module.strip()] = level
    return levels


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
    module_levels: Mapping[str, int | str] | None = None,
) -> logging.Logger:
    """
    Configure the fraktal logger.

    Args:
        level: Logging level for the whole library (e.g., logging.INFO, "DEBUG")
        json_format: Whether to emit one JSON object per line
        module_levels: Level overrides keyed by logger name below "fraktal"

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Re-configuring replaces the previous handler
    if logger.handlers:
        logger.handlers.clear()

    # Module overrides may be more verbose than the root level, so the
    # handler itself does not filter.
    handler = logging.StreamHandler(sys.stdout)

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    for module, module_level in (module_levels or {}).items():
        get_logger(module).setLevel(module_level)

    logger.propagate = False

    return logger


def configure_from_config(config: Config, level: int | str | None = None) -> logging.Logger:
    """Configure logging from a Config: JSON output in production."""
    return configure_logging(
        level=level or config.log_level,
        json_format=config.env == "production",
        module_levels=parse_module_levels(config.log_levels),
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a child logger of fraktal."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
