# lazuli/utils/logger.py
from __future__ import annotations

"""Logging
----------
Everything lazuli logs goes to the `lazuli` logger tree: a rich console
handler, plus a JSON-lines file when LOG_TO_FILE is set. Scenario context
bound with `bind()` rides along on every record.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, MutableMapping, Optional

from rich.console import Console
from rich.logging import RichHandler

from lazuli.utils.config import LogLevel, Settings, get_settings

__all__ = [
    "get_logger",
    "configure",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
]

ROOT_LOGGER = "lazuli"

_lock = threading.Lock()
_done = False
_bound: dict[str, Any] = {}


class ContextAdapter(logging.LoggerAdapter):
    """
    Attaches `record.context`: the bound scenario context at emit time,
    overlaid with this adapter's own keys.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        context = {**_bound, **(self.extra or {})}
        kwargs.setdefault("extra", {})["context"] = context
        return msg, kwargs


class JsonLinesFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _console_handler(settings: Settings, level: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True, no_color=not settings.COLORIZED_OUTPUT),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
        omit_repeated_times=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def _file_handler(settings: Settings, level: int) -> logging.Handler:
    settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        settings.LOG_FILE,
        maxBytes=2 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(JsonLinesFormatter())
    handler.setLevel(level)
    return handler


def configure(settings: Optional[Settings] = None, force: bool = False) -> None:
    """
    Install lazuli's handlers once. Only the `lazuli` tree is touched so the
    test runner keeps the root logger.
    """
    global _done
    if _done and not force:
        return
    with _lock:
        if _done and not force:
            return
        settings = settings or get_settings()
        level = logging.getLevelName(LogLevel(settings.LOG_LEVEL).value)

        tree = logging.getLogger(ROOT_LOGGER)
        tree.setLevel(level)
        tree.propagate = False
        for old in list(tree.handlers):
            tree.removeHandler(old)
            old.close()

        tree.addHandler(_console_handler(settings, level))
        if settings.LOG_TO_FILE:
            tree.addHandler(_file_handler(settings, level))

        logging.getLogger("playwright").setLevel(max(level, logging.WARNING))
        _done = True


def get_logger(name: Optional[str] = None) -> ContextAdapter:
    """`get_logger(__name__)` from any module; names are placed under `lazuli.`."""
    configure()
    if not name or name == ROOT_LOGGER:
        full = ROOT_LOGGER
    elif name.startswith(ROOT_LOGGER + "."):
        full = name
    else:
        full = f"{ROOT_LOGGER}.{name}"
    return ContextAdapter(logging.getLogger(full), {})


def set_log_level(level: LogLevel | str) -> None:
    configure()
    numeric = logging.getLevelName(LogLevel(str(getattr(level, "value", level)).upper()).value)
    tree = logging.getLogger(ROOT_LOGGER)
    tree.setLevel(numeric)
    for handler in tree.handlers:
        handler.setLevel(numeric)


def bind(**context: Any) -> None:
    """Add keys (scenario name, id, ...) to every record from now on."""
    _bound.update(context)


def unbind(*keys: str) -> None:
    for key in keys:
        _bound.pop(key, None)


def log_with_context(logger: logging.LoggerAdapter, **context: Any) -> ContextAdapter:
    """
    Same logger, extra keys for one block of work:

        log_with_context(log, groups=["wait"]).debug("Caught timeout")
    """
    extra = dict(getattr(logger, "extra", None) or {})
    extra.update(context)
    return ContextAdapter(logger.logger, extra)
