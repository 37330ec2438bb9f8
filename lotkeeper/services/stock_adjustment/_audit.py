"""
Audit trail for stock operations.

One append-only entry per quantity-changing call, written in the same
transaction as the batch mutation it describes.
"""

import logging
from typing import List, Optional, Union

from ...models import db, AuditAction, AuditLogEntry
from ...utils.error_messages import ErrorMessages as EM
from ...utils.timezone_utils import TimezoneUtils
from ..errors import ValidationError

logger = logging.getLogger(__name__)


def record_audit_entry(
    product_id: int,
    action: Union[AuditAction, str],
    quantity_change: int,
    batch_id: Optional[int] = None,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
) -> AuditLogEntry:
    """Stage an audit entry on the session; the caller commits."""
    entry = AuditLogEntry(
        product_id=product_id,
        batch_id=batch_id,
        action=AuditAction(action),
        quantity_change=quantity_change,
        reason=reason,
        notes=notes,
        timestamp=TimezoneUtils.utc_now_naive(),
    )
    db.session.add(entry)
    logger.debug(
        "AUDIT: product=%s batch=%s action=%s change=%s",
        product_id, batch_id, entry.action.value, quantity_change,
    )
    return entry


def get_audit_log(
    product_id: Optional[int] = None,
    batch_id: Optional[int] = None,
    action: Union[AuditAction, str, None] = None,
    limit: Optional[int] = 100,
) -> List[AuditLogEntry]:
    """Newest first."""
    query = AuditLogEntry.query
    if product_id is not None:
        query = query.filter(AuditLogEntry.product_id == product_id)
    if batch_id is not None:
        query = query.filter(AuditLogEntry.batch_id == batch_id)
    if action:
        try:
            action = AuditAction(action)
        except ValueError:
            choices = ', '.join(a.value for a in AuditAction)
            raise ValidationError(EM.INVALID_CHOICE.format(field='action', choices=choices), field='action')
        query = query.filter(AuditLogEntry.action == action)
    query = query.order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()
