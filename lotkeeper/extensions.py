"""Extension singletons, bound to the app in ``create_app``."""
from __future__ import annotations

from flask import current_app
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

__all__ = ["db", "migrate", "cache", "limiter"]

_FALLBACK_LIMITS = "5000 per hour;600 per minute"

db = SQLAlchemy()
# render_as_batch lets autogenerate emit ALTERs that SQLite can apply
migrate = Migrate(compare_type=True, render_as_batch=True)
# Dashboard and report projections; invalidated after every stock write
cache = Cache()


def _api_rate_limits() -> str:
    """``RATELIMIT_DEFAULT`` as a ``;``-joined list (commas are accepted as separators too)."""
    configured = current_app.config.get("RATELIMIT_DEFAULT") or ""
    limits = [part.strip() for part in configured.replace(",", ";").split(";") if part.strip()]
    return ";".join(limits) or _FALLBACK_LIMITS


limiter = Limiter(key_func=get_remote_address, default_limits=[_api_rate_limits])
