"""
Lotkeeper: batch-level inventory for small businesses.

``create_app`` builds the Flask application: configuration, logging, the
database and migration extensions, the report cache, the API rate limiter,
the expiry classifier, the JSON API and the maintenance CLI.
"""
import logging
import os
from typing import Any

from flask import Flask
from sqlalchemy.pool import StaticPool

from .blueprints_registry import register_blueprints
from .config import ENV_DIAGNOSTICS
from .extensions import cache, db, limiter, migrate
from .logging_config import configure_logging
from .services.expiry import init_expiry_classifier

logger = logging.getLogger(__name__)

_SQLITE_UNSUPPORTED_POOL_ARGS = ("pool_size", "max_overflow", "pool_timeout", "pool_recycle")
_TRUTHY = {"1", "true", "yes", "on"}


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    os.makedirs(app.instance_path, exist_ok=True)

    _apply_config(app, config)
    _adapt_engine_options_for_sqlite(app)
    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app, config={
        "CACHE_TYPE": app.config.get("CACHE_TYPE", "SimpleCache"),
        "CACHE_DEFAULT_TIMEOUT": app.config.get("CACHE_DEFAULT_TIMEOUT", 60),
    })
    app.config.setdefault("RATELIMIT_STORAGE_URI", "memory://")
    limiter.init_app(app)
    # Fails startup on a negative or non-integer EXPIRY_WARNING_DAYS
    init_expiry_classifier(app)

    from . import models  # noqa: F401  # register tables on the metadata

    register_blueprints(app)

    @app.teardown_request
    def _rollback_failed_request(exc):
        if exc is not None:
            db.session.rollback()

    from .management import register_commands

    register_commands(app)
    _maybe_create_all(app)

    logger.info(
        "lotkeeper started (%s, cache=%s, expiry window=%s day(s))",
        ENV_DIAGNOSTICS["active"], app.config.get("CACHE_TYPE"), app.config.get("EXPIRY_WARNING_DAYS"),
    )
    return app


def _apply_config(app: Flask, overrides: dict[str, Any] | None) -> None:
    app.config.from_object("lotkeeper.config.Config")
    overrides = overrides or {}
    app.config.update(overrides)
    if "DATABASE_URL" in overrides:
        app.config["SQLALCHEMY_DATABASE_URI"] = overrides["DATABASE_URL"]
    app.config["ENV_DIAGNOSTICS"] = ENV_DIAGNOSTICS

    for warning in ENV_DIAGNOSTICS["warnings"]:
        logger.warning("Environment configuration warning: %s", warning)
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise RuntimeError("DATABASE_URL must be set outside development and testing.")


def _adapt_engine_options_for_sqlite(app: Flask) -> None:
    uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if not uri.startswith("sqlite"):
        return
    options = {
        key: value
        for key, value in app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}).items()
        if key not in _SQLITE_UNSUPPORTED_POOL_ARGS
    }
    if uri == "sqlite:///:memory:":
        # One shared connection, or each checkout would see an empty database
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = options


def _maybe_create_all(app: Flask) -> None:
    if (os.environ.get("SQLALCHEMY_CREATE_ALL") or "").strip().lower() not in _TRUTHY:
        logger.debug("db.create_all() not enabled; Alembic migrations are the source of truth")
        return
    logger.info("Creating tables via db.create_all() (SQLALCHEMY_CREATE_ALL)")
    with app.app_context():
        db.create_all()
