"""Structured logging helpers."""
from __future__ import annotations
import json as _json
import logging
import os
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "mixdiag"

_LOG_JSON = os.getenv("MIXDIAG_LOG_JSON") in {"1", "true", "TRUE"}


def init_logging(level: str | int = "INFO", json_lines: bool | None = None):
    global _LOG_JSON
    if json_lines is not None:
        _LOG_JSON = json_lines
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    if logging.getLogger().handlers:
        logging.getLogger(LOGGER_NAME).setLevel(level)
        return
    logging.basicConfig(level=level, format="%(message)s")

def _emit(level: str, event: str, **fields: Any):
    logger = logging.getLogger(LOGGER_NAME)
    lvl = getattr(logging, level.upper(), logging.INFO)
    if not logger.isEnabledFor(lvl):
        return
    if _LOG_JSON:
        record = {"ts": datetime.now(timezone.utc).isoformat(), "level": level, "event": event}
        record.update(fields)
        logger.log(lvl, _json.dumps(record, ensure_ascii=False, default=str))
    else:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        logger.log(lvl, f"{event} {extras}".strip())

def info(event: str, **fields: Any):
    _emit("INFO", event, **fields)

def warning(event: str, **fields: Any):
    _emit("WARNING", event, **fields)

def error(event: str, **fields: Any):
    _emit("ERROR", event, **fields)

def debug(event: str, **fields: Any):
    _emit("DEBUG", event, **fields)

__all__ = ["init_logging", "info", "warning", "error", "debug", "LOGGER_NAME"]
