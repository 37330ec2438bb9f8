from __future__ import annotations

import logging

from flask import has_app_context

from ..extensions import cache

__all__ = [
    "dashboard_cache_key",
    "inventory_report_cache_key",
    "invalidate_inventory_cache",
]

logger = logging.getLogger(__name__)

_INVENTORY_NAMESPACE = "inventory_reports"
_DASHBOARD_KEY = "dashboard:v1:{as_of}:{window}"


def _namespace_version(namespace: str) -> int:
    if not has_app_context():
        return 1
    version_key = f"{namespace}:__version__"
    try:
        version = cache.get(version_key)
    except Exception as exc:
        logger.warning("Cache read failed for %s: %s", version_key, exc)
        version = None
    if not version:
        version = 1
        try:
            cache.set(version_key, version)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", version_key, exc)
    return int(version)


def _bump_namespace(namespace: str) -> None:
    if not has_app_context():
        return
    version_key = f"{namespace}:__version__"
    try:
        version = int(cache.get(version_key) or 1) + 1
        cache.set(version_key, version)
    except Exception as exc:
        # Cache invalidation never fails the stock write that triggered it.
        logger.warning("Cache invalidation failed for %s: %s", namespace, exc)


def inventory_report_cache_key(raw_key: str) -> str:
    version = _namespace_version(_INVENTORY_NAMESPACE)
    return f"{_INVENTORY_NAMESPACE}:v{version}:{raw_key}"


def dashboard_cache_key(as_of, warning_days: int) -> str:
    return inventory_report_cache_key(_DASHBOARD_KEY.format(as_of=as_of.isoformat(), window=warning_days))


def invalidate_inventory_cache() -> None:
    """Drop every cached inventory projection after a stock write commits."""
    _bump_namespace(_INVENTORY_NAMESPACE)
