"""
Logging setup shared by the CLI and the GUI.

Every audit run gets a correlation id so that the three language model calls
it makes (sanitize, analyze, deep dive) can be picked out of a shared log.
API keys never reach a log line: structured output masks them by key name.
"""

import contextvars
import json
import logging
import sys
import time
import uuid
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

from .settings import Settings

F = TypeVar("F", bound=Callable[..., Any])

correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)
operation_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "operation", default=None
)

MASK = "***MASKED***"
SENSITIVE_PATTERNS = frozenset(
    {"api_key", "authorization", "bearer", "credentials", "password", "secret", "token"}
)

TEXT_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(filename)s:%(lineno)d - %(message)s"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# HTTP client chatter drowns out the audit at DEBUG
QUIET_LIBRARIES = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "anthropic": logging.INFO,
    "openai": logging.INFO,
    "PyQt6": logging.INFO,
}


def set_correlation_id(cid: Optional[str] = None) -> str:
    """Tag the current context (one audit run) with ``cid``, generating one if needed."""
    cid = cid or f"audit_{uuid.uuid4()}"
    correlation_id_var.set(cid)
    return cid


def mask_sensitive_data(data: Any, additional_patterns: Optional[Iterable[str]] = None) -> Any:
    """
    Return a copy of ``data`` with values under sensitive keys replaced.

    Keys are matched case-insensitively by substring, so ``anthropic_api_key``
    and ``Authorization`` are both caught. Lists and tuples are walked.
    """
    patterns = SENSITIVE_PATTERNS.union(p.lower() for p in additional_patterns or ())

    def is_sensitive(key: Any) -> bool:
        lowered = str(key).lower()
        return any(pattern in lowered for pattern in patterns)

    def walk(value: Any) -> Any:
        if isinstance(value, dict):
            return {k: MASK if is_sensitive(k) else walk(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(walk(item) for item in value)
        return value

    return walk(data)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying the audit correlation id and operation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "correlation_id": correlation_id_var.get(),
            "operation": operation_var.get(),
        }
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, dict):
            entry.update(extra)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(entry), default=str)


def log_performance(operation_name: Optional[str] = None, min_duration_ms: float = 0.0) -> Callable[[F], F]:
    """
    Decorator logging how long a call took and whether it raised.

    Used around the language model calls, which dominate an audit's runtime.
    Calls faster than ``min_duration_ms`` are not logged on success.
    """

    def decorator(func: F) -> F:
        name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            token = operation_var.set(name)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = round((time.perf_counter() - started) * 1000, 2)
                log.error(
                    f"Failed {name} after {elapsed} ms: {e}",
                    extra={"extra_data": {"duration_ms": elapsed, "success": False,
                                          "error_type": type(e).__name__}},
                )
                raise
            finally:
                operation_var.reset(token)

            elapsed = round((time.perf_counter() - started) * 1000, 2)
            if elapsed >= min_duration_ms:
                log.info(
                    f"Completed {name} in {elapsed} ms",
                    extra={"extra_data": {"duration_ms": elapsed, "success": True}},
                )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def configure_logging(
    settings: Settings,
    log_file: Optional[str] = None,
    structured: bool = False,
    log_level_override: Optional[str] = None,
    module_levels: Optional[Dict[str, str]] = None,
) -> None:
    """
    Install the root handlers for a CLI or GUI session.

    Console output goes to stderr so that it never mixes with report text
    printed on stdout. Calling this again replaces the previous handlers.

    Args:
        settings: Resolved settings; ``log_level`` gives the default level.
        log_file: Also log to this file, rotated at 5 MB.
        structured: Emit JSON lines instead of plain text.
        log_level_override: Level name that wins over ``settings.log_level``.
        module_levels: Per-logger level names, e.g. ``{"ppc_auditor.gui": "WARNING"}``.
    """
    level_name = (log_level_override or settings.log_level or "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JsonFormatter() if structured else logging.Formatter(TEXT_FORMAT))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
        )
        file_handler.setFormatter(JsonFormatter() if structured else logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)

    for name, library_level in QUIET_LIBRARIES.items():
        logging.getLogger(name).setLevel(library_level)
    for name, name_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(name_level.upper())

    logging.getLogger(__name__).debug(
        f"Logging at {level_name} (structured={structured}, file={log_file or 'none'})"
    )
