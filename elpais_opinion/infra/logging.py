"""Logging setup shared by the scraper, the translator and the harness.

Loggers are named ``elpais_opinion.<program>.<task_type>``. Output goes to
stderr as a pattern line or, with ``EPO_LOG_JSON=1``, one JSON object per
record. Harness workers put their session label into a per-thread context
(``mdc_put``) so lines from concurrent sessions can be told apart.

Environment:
- ``EPO_LOG_LEVEL``: TRACE, DEBUG, INFO, WARN, ERROR, FATAL (default: INFO)
- ``EPO_LOG_JSON``: 1 for JSON lines (default: 0)
"""

from __future__ import annotations

import contextvars
import json
import logging
import logging.config
import os
from typing import Any, Dict, Optional

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

PATTERN = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s%(mdc_suffix)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED = False

# Each worker thread sees its own mapping.
_MDC: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("MDC", default={})


def mdc_put(key: str, value: Any) -> None:
    d = dict(_MDC.get())
    d[key] = value
    _MDC.set(d)


def mdc_clear() -> None:
    _MDC.set({})


class MDCFilter(logging.Filter):
    """Copy the current context onto the record as ``mdc`` and ``mdc_suffix``."""

    def filter(self, record: logging.LogRecord) -> bool:
        d = _MDC.get()
        record.mdc = d
        if d:
            record.mdc_suffix = " | MDC: " + " ".join(f"{k}={v}" for k, v in d.items())
        else:
            record.mdc_suffix = ""
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        mdc = getattr(record, "mdc", None)
        if mdc:
            payload["mdc"] = mdc
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _level_from_env(name: str, default: str = "INFO") -> int:
    s = os.getenv(name, default).strip().upper()
    s = {"WARN": "WARNING", "FATAL": "CRITICAL"}.get(s, s)
    if s == "TRACE":
        return TRACE_LEVEL
    return getattr(logging, s, logging.INFO)


def build_logging_config() -> Dict[str, Any]:
    """dictConfig for a single stderr handler with the MDC filter attached."""
    level = _level_from_env("EPO_LOG_LEVEL", "INFO")
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"mdc": {"()": MDCFilter}},
        "formatters": {
            "pattern": {"format": PATTERN, "datefmt": DATEFMT},
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if _env_bool("EPO_LOG_JSON") else "pattern",
                "filters": ["mdc"],
                "stream": "ext://sys.stderr",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        # selenium and urllib3 are chatty at DEBUG
        "loggers": {
            "selenium": {"level": "WARNING"},
            "urllib3": {"level": "WARNING"},
        },
    }


def init_logging(force: bool = False) -> None:
    """Apply ``build_logging_config``; later calls are no-ops unless ``force``."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    logging.config.dictConfig(build_logging_config())
    _CONFIGURED = True


def attach_file_handler(log_file: str) -> None:
    """Also write pattern lines to ``log_file``; attaching the same path twice is a no-op."""
    root = logging.getLogger("")
    target = os.path.abspath(log_file)
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and h.baseFilename == target:
            return
    fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    fh.setFormatter(logging.Formatter(PATTERN, DATEFMT))
    fh.addFilter(MDCFilter())
    fh.setLevel(root.level)
    root.addHandler(fh)


def get_unified_logger(program: str, task_type: str) -> logging.Logger:
    if not _CONFIGURED and not logging.getLogger("").handlers:
        init_logging()
    return logging.getLogger(f"elpais_opinion.{program}.{task_type}".strip("."))


def unified_print(message: str, program: str, task_type: str, level: str = "info") -> None:
    """Echo ``message`` to stdout and log it at ``level`` (TRACE..FATAL, any case)."""
    logger = get_unified_logger(program, task_type)
    print(f"[{program}][{task_type}] {message}")
    lvl = (level or "info").strip().upper()
    lvl = {"WARN": "WARNING", "FATAL": "CRITICAL"}.get(lvl, lvl)
    if lvl == "TRACE":
        logger.log(TRACE_LEVEL, message)
    else:
        logger.log(getattr(logging, lvl, logging.INFO), message)


def _emit(program: str, task_type: str, tag: str, payload: Dict[str, Any], level: int = logging.INFO) -> None:
    get_unified_logger(program, task_type).log(
        level, "[%s] %s", tag, json.dumps(payload, ensure_ascii=False, default=str)
    )


def log_task_start(program: str, task_type: str, details: Optional[Dict[str, Any]] = None) -> None:
    _emit(program, task_type, "TASK START", dict(details or {}))


def log_task_end(
    program: str, task_type: str, success: bool, details: Optional[Dict[str, Any]] = None
) -> None:
    _emit(program, task_type, "TASK END", {"success": success, **(details or {})})


def log_processing_step(
    program: str, task_type: str, message: str, details: Optional[Dict[str, Any]] = None
) -> None:
    logger = get_unified_logger(program, task_type)
    if details:
        logger.info("%s | %s", message, json.dumps(details, ensure_ascii=False, default=str))
    else:
        logger.info("%s", message)


def log_error(program: str, task_type: str, error: BaseException, context: str = "") -> None:
    logger = get_unified_logger(program, task_type)
    exc_info = (type(error), error, error.__traceback__)
    if context:
        logger.error("%s | %s", context, error, exc_info=exc_info)
    else:
        logger.error("%s", error, exc_info=exc_info)


def log_performance(
    program: str, task_type: str, metric: str, value: Any, details: Optional[Dict[str, Any]] = None
) -> None:
    _emit(program, task_type, "PERF", {"metric": metric, "value": value, **(details or {})})


def log_api_call(
    program: str,
    task_type: str,
    api_name: str,
    url: str,
    request_data: Any,
    response_data: Any,
    response_time: float,
    status_code: int,
) -> None:
    payload = {
        "api": api_name,
        "url": url,
        "request": request_data,
        "response": response_data,
        "response_time": round(response_time, 3),
        "status_code": status_code,
    }
    _emit(program, task_type, "API", payload, logging.DEBUG)


def log_file_operation(
    program: str,
    task_type: str,
    operation: str,
    file_path: str,
    file_size: int,
    duration: float,
    status: str,
) -> None:
    payload = {
        "operation": operation,
        "path": file_path,
        "size": file_size,
        "duration": round(duration, 3),
        "status": status,
    }
    _emit(program, task_type, "FILE", payload)


def log_batch_processing(
    program: str,
    task_type: str,
    operation: str,
    total_items: int,
    success_count: int,
    failure_count: int,
    duration: float,
    status: str,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    payload: Dict[str, Any] = {
        "operation": operation,
        "total": total_items,
        "success": success_count,
        "failed": failure_count,
        "duration": round(duration, 3),
        "status": status,
        **(extra or {}),
    }
    _emit(program, task_type, "BATCH", payload)


__all__ = [
    "init_logging",
    "build_logging_config",
    "attach_file_handler",
    "mdc_put",
    "mdc_clear",
    "get_unified_logger",
    "unified_print",
    "log_task_start",
    "log_task_end",
    "log_processing_step",
    "log_error",
    "log_performance",
    "log_api_call",
    "log_file_operation",
    "log_batch_processing",
]
