"""
Maintenance sweeps run from the CLI: the expiry check (log-only) and the
purge of long-discarded batches.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from flask import current_app

from ..models import db, AuditLogEntry, BatchStatus, DiscardedItem, StockBatch
from ..utils.timezone_utils import TimezoneUtils
from .cache_invalidation import invalidate_inventory_cache
from .expiry import get_expiry_classifier
from .inventory_queries import expired_batches, expiring_soon_batches

logger = logging.getLogger(__name__)

DEFAULT_DISCARD_RETENTION_DAYS = 90


@dataclass
class ExpiryCheckReport:
    as_of: date
    warning_days: int
    expired: List[dict] = field(default_factory=list)
    expiring_soon_count: int = 0


def run_expiry_check(as_of: Optional[date] = None) -> ExpiryCheckReport:
    """Log expired batches still on hand and how many expire within the warning window."""
    classifier = get_expiry_classifier()
    today = TimezoneUtils.to_business_date(as_of)
    logger.info("Running expiry check for %s", today)

    report = ExpiryCheckReport(as_of=today, warning_days=classifier.warning_days)
    report.expired = expired_batches(today)
    report.expiring_soon_count = len(expiring_soon_batches(today))

    if report.expired:
        logger.warning("Found %s expired batch(es):", len(report.expired))
        for row in report.expired:
            logger.warning(
                "  - %s (%s) at %s: %s %s, expired %s day(s) ago",
                row['product_name'],
                row['sku'] or 'No SKU',
                row['location'] or 'unknown location',
                row['quantity'],
                row['unit'] or 'units',
                -row['days_remaining'],
            )
    else:
        logger.info("No expired batches found")

    if report.expiring_soon_count:
        logger.warning(
            "%s batch(es) expiring within %s day(s)", report.expiring_soon_count, classifier.warning_days
        )
    logger.info("Expiry check completed")
    return report


def purge_discarded_batches(retention_days: Optional[int] = None, now: Optional[datetime] = None) -> int:
    """
    Delete discarded batches whose discard is older than the retention period.

    Audit entries and discard records outlive the batch; their batch reference
    is cleared first.
    """
    if retention_days is None:
        retention_days = current_app.config.get('DISCARD_RETENTION_DAYS', DEFAULT_DISCARD_RETENTION_DAYS)
    cutoff = (now or TimezoneUtils.utc_now_naive()) - timedelta(days=retention_days)
    logger.info("Purging batches discarded before %s", cutoff.isoformat())

    stale_ids = [
        batch_id for (batch_id,) in db.session.query(StockBatch.id).filter(
            StockBatch.status == BatchStatus.DISCARDED,
            StockBatch.discarded_at.isnot(None),
            StockBatch.discarded_at < cutoff,
        ).all()
    ]
    if not stale_ids:
        logger.info("No old discarded batches to clean up")
        return 0

    try:
        AuditLogEntry.query.filter(AuditLogEntry.batch_id.in_(stale_ids)).update(
            {AuditLogEntry.batch_id: None}, synchronize_session=False
        )
        DiscardedItem.query.filter(DiscardedItem.batch_id.in_(stale_ids)).update(
            {DiscardedItem.batch_id: None}, synchronize_session=False
        )
        deleted = StockBatch.query.filter(StockBatch.id.in_(stale_ids)).delete(synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Purge of discarded batches failed")
        raise

    db.session.expire_all()
    invalidate_inventory_cache()
    logger.info("Cleaned up %s old discarded batch(es)", deleted)
    return deleted
