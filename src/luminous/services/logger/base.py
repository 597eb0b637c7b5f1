from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Optional, Mapping, Any
import logging


@dataclass(frozen=True)
class LogContext:
    component: Optional[str] = None
    key: Optional[str] = None
    pass_id: Optional[str] = None

    def as_extra(self) -> Mapping[str, Any]:
        # Only include non-None fields; logging.Formatter will lookup keys by name.
        return {k: v for k, v in self.__dict__.items() if v is not None}


class ContextAdapter(logging.LoggerAdapter):
    """
    Injects contextual fields into LogRecord via `extra`.
    Preserves original logger API (info, debug, etc.).
    """
    def process(self, msg, kwargs):
        extra = kwargs.get("extra") or {}
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def with_context(logger: logging.Logger, ctx: LogContext) -> logging.Logger:
    return ContextAdapter(logger, ctx.as_extra())


class LoggerService(Protocol):
    """Contract used by the rest of the system (coordinator, dedup loop, routes)."""

    def base(self) -> logging.Logger: ...
    def for_namespace(self, ns: str) -> logging.Logger: ...
    def with_context(self, logger: logging.Logger, ctx: LogContext) -> logging.Logger: ...

    def for_sync(self) -> logging.Logger: ...
    def for_dedup(self) -> logging.Logger: ...
    def for_api(self) -> logging.Logger: ...
