"""
JSON logging for routing and sync.

Routing decisions carry the operation, the target store and the caller's
override as record attributes. JsonLogFormatter writes them out as one JSON
object per line, so the path of every call can be followed in a log
aggregator.
"""

import json
import logging
import sys
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, TextIO

# Record attributes copied into the JSON output when present.
ROUTING_FIELDS = ("store", "operation", "target", "override")

PACKAGE_LOGGER = "offline_store"


class JsonLogFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Only the attributes named in ``fields`` are taken from the record, so
    the output keeps a fixed set of keys regardless of what other code
    attaches to records.
    """

    def __init__(self, fields: Iterable[str] = ROUTING_FIELDS) -> None:
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in self.fields:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Overrides are not always JSON-native
        return json.dumps(entry, default=repr)


def configure_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Write the package's log records to ``stream`` as JSON lines.

    Calling again replaces the handler added by an earlier call; handlers
    installed by the host application are left alone.

    Args:
        level: Level for the ``offline_store`` logger
        stream: Destination (default: stderr)

    Returns:
        The ``offline_store`` logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JsonLogFormatter):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonLogFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_store_logger(name: str) -> logging.Logger:
    """Get the ``offline_store.{name}`` logger."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class StoreLoggerAdapter(logging.LoggerAdapter):
    """Adds the store name to every record.

    Fields passed per call through ``extra=`` are kept alongside it.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs
