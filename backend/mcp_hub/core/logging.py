# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured logging for the MCP hub.

JSON lines by default so connector and workflow events can be grepped
and fed to log aggregation. `logging.format: text` switches to plain lines.
All hub loggers live under the `neon.` namespace.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TYPE_CHECKING
from pathlib import Path

if TYPE_CHECKING:
    from mcp_hub.core.config import Config

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in via `extra`
_RESERVED_ATTRS = frozenset([
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName"
])


class JSONFormatter(logging.Formatter):
    """One JSON object per record; `extra` fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        )
        return json.dumps(entry, default=str)


def _hub_logger(name: str, config: Optional["Config"] = None) -> logging.Logger:
    """
    Logger configured from the hub config.

    Handlers are replaced on every call so a config reload takes effect
    for loggers created afterwards.
    """
    if config is None:
        from mcp_hub.core.config import get_config
        config = get_config()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.handlers = []

    if config.log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_service_logger(component: str, config: Optional["Config"] = None) -> logging.Logger:
    """Logger for a hub component (registry, cache, executor, ...)."""
    return _hub_logger(f"neon.service.{component}", config)


def get_api_logger(config: Optional["Config"] = None) -> logging.Logger:
    return _hub_logger("neon.api", config)


def log_event(logger: logging.Logger, event: str, level: str = "INFO", **fields: Any) -> None:
    """Log `event` with `fields` attached as structured extras."""
    getattr(logger, level.lower())(event, extra=fields)
