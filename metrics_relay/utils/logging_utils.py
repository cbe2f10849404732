"""Unified logging utilities for metrics-relay."""
from __future__ import annotations

import json
import logging
import os
import sys
import time

from .env_flags import is_truthy_env

DEFAULT_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'
# Minimal console format (message only) used for cleaner terminal output.
MINIMAL_CONSOLE_FORMAT = '%(levelname)s %(name)s: %(message)s'

# Transport chatter would otherwise log every pooled connection on each cycle
SUPPRESSED_LOGGERS = [
    'urllib3', 'requests',
]


class JsonFormatter(logging.Formatter):
    """One JSON object per record; tracebacks carried under `exc_info`."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'ts': getattr(record, 'created', time.time()),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'msg': record.getMessage(),
        }
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        try:
            return json.dumps(payload)
        except (TypeError, ValueError):
            return str(payload)


def setup_logging(level: str = 'INFO', log_file: str | None = None, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure root logging.

    Console handler uses the short format unless METRICS_RELAY_VERBOSE_CONSOLE=1
    or an explicit `fmt` is passed. METRICS_RELAY_JSON_LOGS=1 switches the
    console to one JSON object per line.

    File handler (if enabled) always uses full DEFAULT_FORMAT for diagnostics.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    # Remove existing handlers to avoid duplication on re-init
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    if fmt != DEFAULT_FORMAT:
        console_fmt = fmt
    elif is_truthy_env('METRICS_RELAY_VERBOSE_CONSOLE'):
        console_fmt = DEFAULT_FORMAT
    else:
        console_fmt = MINIMAL_CONSOLE_FORMAT

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    if is_truthy_env('METRICS_RELAY_JSON_LOGS'):
        console.setFormatter(JsonFormatter())
    else:
        console.setFormatter(logging.Formatter(console_fmt))
    root.addHandler(console)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            fh = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            root.error("Failed to create log file handler %s: %s", log_file, e)
        else:
            fh.setLevel(log_level)
            fh.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            root.addHandler(fh)

    for name in SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root

__all__ = ["setup_logging", "JsonFormatter", "DEFAULT_FORMAT", "MINIMAL_CONSOLE_FORMAT"]
