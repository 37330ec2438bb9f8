from __future__ import annotations

import logging
import multiprocessing
import os
import sys
from typing import Final

LOGGER: Final = logging.getLogger("gunicorn.config")


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.environ.get(key, default))
    except (TypeError, ValueError):
        return default


def _configured_workers() -> int:
    """Explicit worker count wins; otherwise 2x CPU capped at 4 for a small shop."""
    cpu_count = max(multiprocessing.cpu_count(), 1)
    auto_workers = max(2, min(4, cpu_count * 2))
    if "GUNICORN_WORKERS" in os.environ:
        return _env_int("GUNICORN_WORKERS", auto_workers)
    if "WEB_CONCURRENCY" in os.environ:
        return _env_int("WEB_CONCURRENCY", auto_workers)
    return auto_workers


bind = f"0.0.0.0:{os.environ.get('PORT', 5000)}"
worker_class = os.environ.get("GUNICORN_WORKER_CLASS", "gthread")
workers = _configured_workers()
threads = _env_int("GUNICORN_THREADS", 4)
timeout = _env_int("GUNICORN_TIMEOUT", 60)
keepalive = _env_int("GUNICORN_KEEPALIVE", 5)
max_requests = _env_int("GUNICORN_MAX_REQUESTS", 2000)
max_requests_jitter = _env_int("GUNICORN_MAX_REQUESTS_JITTER", 100)

errorlog = "-"
accesslog = "-"
loglevel = os.environ.get("GUNICORN_LOG_LEVEL", "info")
proc_name = "lotkeeper"

_summary = f"Gunicorn bind={bind} class={worker_class} workers={workers} threads={threads} timeout={timeout}s"
if LOGGER.handlers:
    LOGGER.info(_summary)
else:
    sys.stderr.write(_summary + "\n")
