from __future__ import annotations

from datetime import datetime, timezone
import json
import logging

# Context fields the patterns reference; filled with "-" when a record lacks them.
_CONTEXT_FIELDS = ("component", "key", "pass_id")

# Attributes every LogRecord carries; anything else was passed through `extra`.
_RESERVED = set(vars(logging.LogRecord("x", 0, "x", 0, "x", None, None))) | {"message", "asctime"}


class SafeFormatter(logging.Formatter):
    """Text formatter that tolerates records without context extras."""

    def format(self, record: logging.LogRecord) -> str:
        for name in _CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return super().format(record)


class ColorFormatter(SafeFormatter):
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.COLORS.get(record.levelno)
        return f"{color}{text}{self.RESET}" if color else text


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context extras become top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in _RESERVED and not k.startswith("_"):
                payload[k] = v
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)
