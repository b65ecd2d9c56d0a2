"""
Structured logging for the engine.

Every module logs through ``get_logger(__name__)`` and passes structured
fields in ``extra``. Nothing is configured at import: a host that embeds the
engine keeps its own logging tree until it calls ``setup_logging()``.

Context
-------
Battle-scoped fields (player, battle, dungeon, operation) live in a
ContextVar. ``LogContext`` binds them for a block and ``ContextFilter``
copies them onto every record, together with a short correlation id that
nested blocks inherit. A record's ``component`` defaults to its logger's
parent package (``lifequest.modules.combat`` for the orchestrator).

Output
------
- console: JSON in production, colored text on a TTY, plain text otherwise
- file (opt-in): JSON lines, rotated at UTC midnight, one backup kept
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

CONTEXT_FIELDS = ("player_id", "battle_id", "dungeon_id", "operation", "component", "correlation_id")

_context: ContextVar[Dict[str, str]] = ContextVar("lifequest_log_context", default={})

# Attributes every LogRecord carries; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_INSTALLED_MARK = "_lifequest_handler"


# ============================================================================
# CONTEXT
# ============================================================================


def _new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


class LogContext:
    """
    Bind context fields to every record logged inside the block.

    >>> with LogContext(player_id="p1", battle_id=battle.id, operation="battle.advance"):
    ...     orchestrator.advance(battle)
    """

    def __init__(
        self,
        player_id: Optional[str] = None,
        battle_id: Optional[str] = None,
        dungeon_id: Optional[str] = None,
        operation: Optional[str] = None,
        component: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        outer = _context.get()
        fields = dict(
            player_id=player_id,
            battle_id=battle_id,
            dungeon_id=dungeon_id,
            operation=operation,
            component=component,
            **extra,
        )
        self.context: Dict[str, str] = dict(outer)
        self.context.update({k: str(v) for k, v in fields.items() if v is not None})
        self.context["correlation_id"] = correlation_id or outer.get("correlation_id") or _new_correlation_id()
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


def set_log_context(**values: Any) -> None:
    """Add fields to the current context without a block; None values are skipped."""
    merged = dict(_context.get())
    merged.update({k: str(v) for k, v in values.items() if v is not None})
    _context.set(merged)


def clear_log_context() -> None:
    _context.set({})


def get_log_context() -> Dict[str, str]:
    return dict(_context.get())


# ============================================================================
# FILTER & FORMATTERS
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto the record; never drops records."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        if not getattr(record, "component", None):
            record.component = record.name.rpartition(".")[0] or record.name
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        text = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{text}\033[0m" if color else text


class JSONFormatter(logging.Formatter):
    """One JSON object per record: core fields, context fields, then `extra`."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update({k: getattr(record, k) for k in CONTEXT_FIELDS if getattr(record, k, None)})

        extra = {
            k: v
            for k, v in vars(record).items()
            if k not in _RECORD_ATTRS and k not in CONTEXT_FIELDS and not k.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# SETUP
# ============================================================================


@dataclass(frozen=True)
class LoggerConfig:
    """Resolved output settings; `from_static_config` reads them from Config."""

    environment: str
    log_level: int
    use_json: bool
    use_colors: bool
    log_to_file: bool
    logs_dir: Path

    TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(component)s: %(message)s"
    FILE_NAME = "lifequest.json.log"

    @classmethod
    def from_static_config(cls) -> "LoggerConfig":
        from lifequest.core.config.config import Config

        Config.load()
        production = Config.is_production()
        use_json = production if Config.LOG_JSON is None else Config.LOG_JSON
        return cls(
            environment=Config.ENVIRONMENT.value,
            log_level=logging.getLevelName(Config.LOG_LEVEL),
            use_json=use_json,
            use_colors=Config.LOG_COLORS and not use_json and sys.stdout.isatty(),
            log_to_file=Config.LOG_TO_FILE,
            logs_dir=Path(Config.LOGS_DIR),
        )


def _build_handlers(settings: LoggerConfig) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if settings.use_json:
        console.setFormatter(JSONFormatter())
    elif settings.use_colors:
        console.setFormatter(ColoredFormatter(settings.TEXT_FORMAT))
    else:
        console.setFormatter(logging.Formatter(settings.TEXT_FORMAT))
    handlers: List[logging.Handler] = [console]

    if settings.log_to_file:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        rotating = TimedRotatingFileHandler(
            settings.logs_dir / settings.FILE_NAME,
            when="midnight",
            backupCount=1,
            encoding="utf-8",
            utc=True,
        )
        rotating.setFormatter(JSONFormatter())
        handlers.append(rotating)

    for handler in handlers:
        handler.setLevel(settings.log_level)
        handler.addFilter(ContextFilter())
        setattr(handler, _INSTALLED_MARK, True)
    return handlers


def _installed_handlers(root: Logger) -> List[logging.Handler]:
    return [h for h in root.handlers if getattr(h, _INSTALLED_MARK, False)]


def setup_logging(settings: Optional[LoggerConfig] = None) -> None:
    """Attach the engine's handlers to the root logger. Calling it twice is a no-op."""
    root = logging.getLogger()
    if _installed_handlers(root):
        return

    settings = settings or LoggerConfig.from_static_config()
    root.setLevel(settings.log_level)
    for handler in _build_handlers(settings):
        root.addHandler(handler)

    get_logger(__name__).info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "json": settings.use_json,
            "log_to_file": settings.log_to_file,
        },
    )


def shutdown_logging() -> None:
    """Flush and detach the handlers `setup_logging` added; others are left alone."""
    root = logging.getLogger()
    for handler in _installed_handlers(root):
        root.removeHandler(handler)
        handler.flush()
        handler.close()


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)
