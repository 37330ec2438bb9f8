from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone as dt_timezone

import pytz
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_ISO_DATETIME_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")


class TimezoneUtils:
    """Clock helpers. Storage is UTC; business dates use the configured zone."""

    @staticmethod
    def validate_timezone(tz_name: str | None) -> bool:
        return bool(tz_name) and tz_name in pytz.all_timezones_set

    @staticmethod
    def business_timezone():
        tz_name = DEFAULT_TIMEZONE
        if has_app_context():
            tz_name = current_app.config.get("BUSINESS_TIMEZONE") or DEFAULT_TIMEZONE
        if not TimezoneUtils.validate_timezone(tz_name):
            logger.warning("Unknown BUSINESS_TIMEZONE %r; using UTC", tz_name)
            tz_name = DEFAULT_TIMEZONE
        return pytz.timezone(tz_name)

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def utc_now_naive() -> datetime:
        """UTC timestamp without tzinfo, matching the naive DateTime columns."""
        return TimezoneUtils.utc_now().replace(tzinfo=None)

    @staticmethod
    def today() -> date:
        """Calendar date in the business timezone."""
        return TimezoneUtils.utc_now().astimezone(TimezoneUtils.business_timezone()).date()

    @staticmethod
    def to_business_date(value: date | datetime | None) -> date:
        """Collapse a datetime (or None for now) to a business-calendar date."""
        if value is None:
            return TimezoneUtils.today()
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.date()
            return value.astimezone(TimezoneUtils.business_timezone()).date()
        return value

    @staticmethod
    def parse_date(value) -> date | None:
        """Parse ``YYYY-MM-DD`` or a full ISO datetime (reduced to its date)."""
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        text = str(value).strip()
        try:
            if _ISO_DATE.fullmatch(text):
                return date.fromisoformat(text)
            if _ISO_DATETIME_PREFIX.match(text):
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError as exc:
            raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")
