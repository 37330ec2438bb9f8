"""
Expiry classification for stock batches.

A batch's expiration date is mapped to a status tag and a whole number of
days remaining, relative to an "as of" date:

- no expiration date      -> ``no_expiration`` (days_remaining = -1 sentinel)
- days_remaining < 0      -> ``expired``
- 0 <= days_remaining <= W -> ``expiring_soon``
- days_remaining > W      -> ``good``

``W`` is the warning window (``EXPIRY_WARNING_DAYS``, default 7). The window is
read once at startup into a single ``ExpiryClassifier`` kept on
``app.extensions``; report queries and the expiry check derive their date
bounds from that same object.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union

from flask import current_app, has_app_context

from ..utils.timezone_utils import TimezoneUtils

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_WARNING_DAYS = 7
NO_EXPIRATION_DAYS = -1
EXTENSION_KEY = 'expiry_classifier'

DateLike = Union[date, datetime]


class ExpiryStatus(str, enum.Enum):
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    GOOD = "good"
    NO_EXPIRATION = "no_expiration"


@dataclass(frozen=True)
class ExpiryClassification:
    status: ExpiryStatus
    days_remaining: int

    def to_dict(self) -> dict:
        return {'status': self.status.value, 'days_remaining': self.days_remaining}


def _as_utc_datetime(value: DateLike) -> datetime:
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(expiration_date: DateLike, as_of: DateLike) -> int:
    """Whole days from ``as_of`` to ``expiration_date``, rounded up."""
    if isinstance(expiration_date, datetime):
        delta = _as_utc_datetime(expiration_date) - _as_utc_datetime(as_of)
        return math.ceil(delta.total_seconds() / 86400)
    # A date expires at its own midnight, so ceil() over a partial day equals
    # plain date subtraction once as_of is collapsed to a business date.
    return (expiration_date - TimezoneUtils.to_business_date(as_of)).days


def classify(
    expiration_date: Optional[DateLike],
    as_of: DateLike,
    warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
) -> ExpiryClassification:
    """Pure classification of one expiration date against ``as_of``."""
    if expiration_date is None:
        return ExpiryClassification(ExpiryStatus.NO_EXPIRATION, NO_EXPIRATION_DAYS)

    days_remaining = days_until(expiration_date, as_of)
    if days_remaining < 0:
        status = ExpiryStatus.EXPIRED
    elif days_remaining <= warning_days:
        status = ExpiryStatus.EXPIRING_SOON
    else:
        status = ExpiryStatus.GOOD
    return ExpiryClassification(status, days_remaining)


class ExpiryClassifier:
    """Classifier bound to one configured warning window."""

    def __init__(self, warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS):
        if isinstance(warning_days, bool) or not isinstance(warning_days, int):
            raise RuntimeError(f"EXPIRY_WARNING_DAYS must be an integer, got {warning_days!r}")
        if warning_days < 0:
            raise RuntimeError(f"EXPIRY_WARNING_DAYS cannot be negative, got {warning_days}")
        self.warning_days = warning_days

    def classify(self, expiration_date: Optional[DateLike], as_of: Optional[DateLike] = None) -> ExpiryClassification:
        return classify(expiration_date, as_of if as_of is not None else TimezoneUtils.today(), self.warning_days)

    def warning_window(self, as_of: Optional[DateLike] = None) -> Tuple[date, date]:
        """Inclusive expiration-date bounds of the ``expiring_soon`` status."""
        start = TimezoneUtils.to_business_date(as_of)
        return start, start + timedelta(days=self.warning_days)

    def __repr__(self):
        return f'<ExpiryClassifier warning_days={self.warning_days}>'


def init_expiry_classifier(app) -> ExpiryClassifier:
    classifier = ExpiryClassifier(app.config.get('EXPIRY_WARNING_DAYS', DEFAULT_EXPIRY_WARNING_DAYS))
    app.extensions[EXTENSION_KEY] = classifier
    logger.info("Expiry warning window set to %s day(s)", classifier.warning_days)
    return classifier


def get_expiry_classifier() -> ExpiryClassifier:
    """The application's classifier; a default one outside an app context."""
    if has_app_context():
        classifier = current_app.extensions.get(EXTENSION_KEY)
        if classifier is None:
            classifier = init_expiry_classifier(current_app)
        return classifier
    return ExpiryClassifier()
