from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import logging, queue
import logging.handlers

from typing import Optional, Mapping

from luminous.config.config import AppSettings

from .base import LoggerService, LogContext, with_context
from .formatters import SafeFormatter, JsonFormatter, ColorFormatter


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class LoggingConfig:
    """
    Configure sinks & formats.

    Attributes:
      root_ns: base logger name to use (`luminous`).
      level: default level for root logger.
      log_dir: directory for file logs (rotated); None => console only.
      use_json: True => JSON logs for files; console stays text by default.
      enable_queue: True => offload file IO via QueueHandler/Listener (non-blocking).
      per_namespace_levels: optional map (e.g. {"luminous.sync": "DEBUG"}).
      console_pattern: text format string for console.
      file_pattern: text format string for file when use_json=False.
      max_bytes / backup_count: rotation for file handlers.
    """
    root_ns: str = "luminous"
    level: str = "INFO"
    log_dir: Optional[str] = None
    use_json: bool = False
    enable_queue: bool = False
    per_namespace_levels: Optional[Mapping[str, str]] = None
    console_pattern: str = "%(asctime)s %(levelname)s \t%(name)s    key=%(key)s - %(message)s"
    file_pattern: str = "%(asctime)s %(levelname)s %(name)s %(component)s %(key)s %(pass_id)s %(message)s"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    @staticmethod
    def from_cfg(cfg: AppSettings, log_dir: Optional[str] = None) -> "LoggingConfig":
        return LoggingConfig(
            root_ns="luminous",
            level=cfg.logging.level,
            log_dir=log_dir or cfg.logging.log_dir,
            use_json=cfg.logging.json_logs,
            enable_queue=True,
        )


class StdLoggerService(LoggerService):
    """
      • text/JSON formatters
      • per-namespace levels
      • optional async file IO via QueueHandler
      • context helpers (with_context / for_*)
    """
    def __init__(self, base: logging.Logger, *, cfg: LoggingConfig, listener=None):
        self._base = base
        self._cfg = cfg
        self._listener = listener

    # --- LoggerService interface ---

    def base(self) -> logging.Logger:
        return self._base

    def for_namespace(self, ns: str) -> logging.Logger:
        return self._base.getChild(ns)

    def with_context(self, logger: logging.Logger, ctx: LogContext) -> logging.Logger:
        return with_context(logger, ctx)

    def for_sync(self) -> logging.Logger:
        return self.for_namespace("sync")

    def for_dedup(self) -> logging.Logger:
        return self.for_namespace("memory.dedup")

    def for_api(self) -> logging.Logger:
        return self.for_namespace("api")

    def shutdown(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    # --- builder ---

    @staticmethod
    def build(cfg: LoggingConfig) -> "StdLoggerService":
        level = getattr(logging, cfg.level.upper(), logging.INFO)

        root = logging.getLogger(cfg.root_ns)
        # Reset handlers if rebuilding (idempotent server restarts)
        for h in list(root.handlers):
            root.removeHandler(h)
        root.setLevel(level)
        root.propagate = False

        # Per-namespace levels
        if cfg.per_namespace_levels:
            for ns, lvl in cfg.per_namespace_levels.items():
                logging.getLogger(ns).setLevel(getattr(logging, str(lvl).upper(), logging.INFO))

        # Console handler (text)
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(ColorFormatter(cfg.console_pattern))
        root.addHandler(console)

        if not cfg.log_dir:
            return StdLoggerService(root, cfg=cfg)

        # File handler (rotating)
        _ensure_dir(Path(cfg.log_dir))
        file_path = Path(cfg.log_dir) / "luminous.log"

        fh = logging.handlers.RotatingFileHandler(
            file_path, maxBytes=cfg.max_bytes, backupCount=cfg.backup_count, encoding="utf-8"
        )
        if cfg.use_json:
            fh.setFormatter(JsonFormatter())
        else:
            fh.setFormatter(SafeFormatter(cfg.file_pattern))
        fh.setLevel(level)

        listener = None
        if cfg.enable_queue:
            # Non-blocking file IO
            q = queue.Queue(-1)
            root.addHandler(logging.handlers.QueueHandler(q))
            listener = logging.handlers.QueueListener(q, fh, respect_handler_level=True)
            listener.start()
        else:
            root.addHandler(fh)

        return StdLoggerService(root, cfg=cfg, listener=listener)
