from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_DEFAULT_ENV = "development"
_ENV_KEY = "FLASK_ENV"
_VALID_ENVS = ("development", "testing", "production")
_BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


@dataclass(frozen=True)
class EnvironmentInfo:
    name: str
    source: str
    raw_value: str


class EnvReader:
    """Typed access to environment variables; bad values fall back and are recorded in ``warnings``."""

    def __init__(self, data: Mapping[str, str] | None = None):
        self._data = dict(os.environ if data is None else data)
        self.warnings: list[str] = []

    def _fallback(self, key: str, kind: str, value: str, default):
        self.warnings.append(f"{key} expected {kind} but received {value!r}; falling back to {default}.")
        return default

    def _get(self, key: str) -> str | None:
        value = (self._data.get(key) or "").strip()
        return value or None

    def str(self, key: str, default: str | None = None) -> str | None:
        value = self._get(key)
        return default if value is None else value

    def int(self, key: str, default: int = 0) -> int:
        value = self._get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return self._fallback(key, "integer", value, default)

    def bool(self, key: str, default: bool = False) -> bool:
        value = self._get(key)
        if value is None:
            return default
        parsed = _BOOL_WORDS.get(value.lower())
        if parsed is None:
            return self._fallback(key, "boolean", value, default)
        return parsed


def _normalize_db_url(url: str | None) -> str | None:
    """Heroku-style ``postgres://`` URLs are rejected by SQLAlchemy 2."""
    if not url:
        return None
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def _resolve_environment(reader: EnvReader) -> EnvironmentInfo:
    raw_value = reader.str(_ENV_KEY) or _DEFAULT_ENV
    name = raw_value.lower()
    if name not in _VALID_ENVS:
        raise RuntimeError(f"Invalid {_ENV_KEY}={raw_value!r}. Expected one of {list(_VALID_ENVS)}.")
    return EnvironmentInfo(name=name, source=_ENV_KEY, raw_value=raw_value)


env = EnvReader()
ENV_INFO = _resolve_environment(env)


class BaseConfig:
    FLASK_ENV = ENV_INFO.name
    SECRET_KEY = env.str('FLASK_SECRET_KEY', 'devkey-please-change-in-production')
    JSON_SORT_KEYS = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Inventory rules
    EXPIRY_WARNING_DAYS = env.int('EXPIRY_WARNING_DAYS', 7)
    DISCARD_RETENTION_DAYS = env.int('DISCARD_RETENTION_DAYS', 90)
    BUSINESS_TIMEZONE = env.str('BUSINESS_TIMEZONE', 'UTC')
    EXPORT_MAX_ROWS = env.int('EXPORT_MAX_ROWS', 10000)

    # Report cache and API throttling
    CACHE_TYPE = env.str('CACHE_TYPE', 'SimpleCache')
    CACHE_DEFAULT_TIMEOUT = env.int('CACHE_DEFAULT_TIMEOUT', 60)
    RATELIMIT_ENABLED = env.bool('RATELIMIT_ENABLED', True)
    RATELIMIT_STORAGE_URI = env.str('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_DEFAULT = env.str('RATELIMIT_DEFAULT', '5000 per hour;600 per minute')

    LOG_LEVEL = env.str('LOG_LEVEL', 'INFO')
    LOG_REDACT_PII = env.bool('LOG_REDACT_PII', True)


class DevelopmentConfig(BaseConfig):
    ENV = 'development'
    DEBUG = True
    # Relative SQLite paths resolve against the instance folder
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL')) or 'sqlite:///lotkeeper.db'
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_recycle': 3600}
    LOG_LEVEL = env.str('LOG_LEVEL', 'DEBUG')


class TestingConfig(BaseConfig):
    ENV = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}
    CACHE_TYPE = 'NullCache'
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    ENV = 'production'
    DEBUG = False
    TESTING = False
    SQLALCHEMY_DATABASE_URI = _normalize_db_url(env.str('DATABASE_URL'))
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_size': env.int('SQLALCHEMY_POOL_SIZE', 10),
        'max_overflow': env.int('SQLALCHEMY_MAX_OVERFLOW', 20),
        'pool_timeout': env.int('SQLALCHEMY_POOL_TIMEOUT', 30),
        'pool_recycle': 1800,
    }


config_map = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}

Config = config_map[ENV_INFO.name]
ENV_DIAGNOSTICS = {
    'active': ENV_INFO.name,
    'source': ENV_INFO.source,
    'variables': {ENV_INFO.source: ENV_INFO.raw_value},
    'warnings': tuple(env.warnings),
}
