"""
FIFO batch allocation.

Pure planning functions: each takes a snapshot of batches (ORM rows or
``BatchSnapshot`` values, anything exposing ``id``, ``quantity``,
``expiration_date`` and ``status``) and returns a plan describing which
batches change and by how much. Nothing here touches the session; the
stock adjustment service applies the plan and writes the audit entry in
the same transaction.

Ordering: earliest expiration first, batches without an expiration date
last, ties broken by batch id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..models.enums import BatchStatus, DiscardReason
from ..utils.batch_number_generator import generate_batch_number
from ..utils.error_messages import ErrorMessages as EM
from ..utils.timezone_utils import TimezoneUtils
from .errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchSnapshot:
    """Detached view of a batch, used by callers outside the ORM and in tests."""

    id: int
    quantity: int
    expiration_date: Optional[date] = None
    status: BatchStatus = BatchStatus.ACTIVE


@dataclass(frozen=True)
class BatchUpdate:
    batch_id: int
    new_quantity: int
    deducted: int


@dataclass(frozen=True)
class DeductionPlan:
    updates: Tuple[BatchUpdate, ...] = ()
    shortfall: int = 0
    requested: int = 0

    @property
    def is_satisfied(self) -> bool:
        return self.shortfall == 0

    @property
    def available(self) -> int:
        return self.requested - self.shortfall

    def to_dict(self) -> dict:
        return {
            'updates': [
                {'batch_id': u.batch_id, 'new_quantity': u.new_quantity, 'deducted': u.deducted}
                for u in self.updates
            ],
            'shortfall': self.shortfall,
        }


@dataclass(frozen=True)
class BatchAddition:
    """Attributes of the new batch an addition creates."""

    product_id: int
    quantity: int
    batch_number: str
    received_date: date
    expiration_date: Optional[date] = None
    location_id: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class DiscardOutcome:
    batch_id: int
    previous_quantity: int
    new_quantity: int
    removed: int
    status: BatchStatus
    reason: DiscardReason
    requested: int = field(default=0)

    @property
    def clamped(self) -> bool:
        return self.requested > self.previous_quantity


def _status_of(batch) -> BatchStatus:
    status = getattr(batch, 'status', BatchStatus.ACTIVE)
    return BatchStatus(status) if status is not None else BatchStatus.ACTIVE


def fifo_sort_key(batch):
    """Earliest expiration first; no expiration sorts last; then by id."""
    expiration = batch.expiration_date
    return (expiration is None, expiration or date.max, batch.id)


def order_for_deduction(batches: Iterable) -> List:
    """Active, non-empty batches in the order a deduction consumes them."""
    eligible = [
        batch for batch in batches
        if _status_of(batch) == BatchStatus.ACTIVE and (batch.quantity or 0) > 0
    ]
    return sorted(eligible, key=fifo_sort_key)


def require_quantity(value, field_name: str = 'quantity', allow_zero: bool = False) -> int:
    """Whole-number quantity check shared by the planners and the service layer."""
    if value is None or value == '':
        raise ValidationError(EM.FIELD_REQUIRED.format(field=field_name), field=field_name)
    if isinstance(value, bool):
        raise ValidationError(EM.INVALID_INTEGER.format(field=field_name), field=field_name)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(EM.INVALID_INTEGER.format(field=field_name), field=field_name)
        value = int(value)
    elif not isinstance(value, int):
        try:
            value = int(str(value).strip())
        except ValueError:
            raise ValidationError(EM.INVALID_INTEGER.format(field=field_name), field=field_name)

    if allow_zero and value < 0:
        raise ValidationError(EM.NON_NEGATIVE_QUANTITY_REQUIRED.format(field=field_name), field=field_name)
    if not allow_zero and value <= 0:
        raise ValidationError(EM.POSITIVE_QUANTITY_REQUIRED.format(field=field_name), field=field_name)
    return value


def allocate_deduction(batches: Sequence, requested_qty) -> DeductionPlan:
    """
    Plan a FIFO deduction of ``requested_qty`` across ``batches``.

    Returns the per-batch updates and the shortfall. A non-zero shortfall
    means the request cannot be covered; the plan then carries no updates
    so nothing can be half-applied.
    """
    requested = require_quantity(requested_qty)
    remaining = requested
    updates: List[BatchUpdate] = []

    for batch in order_for_deduction(batches):
        if remaining == 0:
            break
        deducted = min(batch.quantity, remaining)
        updates.append(BatchUpdate(batch_id=batch.id, new_quantity=batch.quantity - deducted, deducted=deducted))
        remaining -= deducted

    if remaining > 0:
        logger.debug("FIFO: shortfall of %s on request for %s", remaining, requested)
        return DeductionPlan(updates=(), shortfall=remaining, requested=requested)

    return DeductionPlan(updates=tuple(updates), shortfall=0, requested=requested)


def allocate_addition(
    product_id: int,
    quantity,
    *,
    expiration_date: Optional[date] = None,
    batch_number: Optional[str] = None,
    received_date: Optional[date] = None,
    location_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> BatchAddition:
    """Additions always open a new batch, even when one with the same expiry exists."""
    if product_id is None:
        raise ValidationError(EM.FIELD_REQUIRED.format(field='product_id'), field='product_id')
    qty = require_quantity(quantity)
    received = received_date or TimezoneUtils.today()
    number = (batch_number or '').strip() or generate_batch_number(received)
    return BatchAddition(
        product_id=product_id,
        quantity=qty,
        batch_number=number,
        received_date=received,
        expiration_date=expiration_date,
        location_id=location_id,
        notes=notes,
    )


def coerce_discard_reason(reason: Union[str, DiscardReason, None]) -> DiscardReason:
    if isinstance(reason, DiscardReason):
        return reason
    if reason is None or reason == '':
        raise ValidationError(EM.FIELD_REQUIRED.format(field='reason'), field='reason')
    try:
        return DiscardReason(str(reason).strip().lower())
    except ValueError:
        choices = ', '.join(r.value for r in DiscardReason)
        raise ValidationError(EM.INVALID_CHOICE.format(field='reason', choices=choices), field='reason')


def allocate_discard(batch, quantity=None, reason: Union[str, DiscardReason, None] = DiscardReason.OTHER) -> DiscardOutcome:
    """
    Plan a discard from one batch.

    ``quantity`` defaults to the whole batch. Discarding more than the batch
    holds is clamped: the batch ends at zero and becomes discarded, and the
    outcome reports the amount actually removed.
    """
    if _status_of(batch) != BatchStatus.ACTIVE:
        raise ValidationError(EM.BATCH_ALREADY_DISCARDED.format(batch_id=batch.id), field='batch_id')

    discard_reason = coerce_discard_reason(reason)
    current = batch.quantity or 0
    requested = current if quantity is None else require_quantity(quantity)

    new_quantity = current - requested
    if new_quantity <= 0:
        if new_quantity < 0:
            logger.info("Discard of %s from batch %s clamped to %s", requested, batch.id, current)
        return DiscardOutcome(
            batch_id=batch.id,
            previous_quantity=current,
            new_quantity=0,
            removed=current,
            status=BatchStatus.DISCARDED,
            reason=discard_reason,
            requested=requested,
        )

    return DiscardOutcome(
        batch_id=batch.id,
        previous_quantity=current,
        new_quantity=new_quantity,
        removed=requested,
        status=BatchStatus.ACTIVE,
        reason=discard_reason,
        requested=requested,
    )


__all__ = [
    'BatchSnapshot',
    'BatchUpdate',
    'DeductionPlan',
    'BatchAddition',
    'DiscardOutcome',
    'fifo_sort_key',
    'order_for_deduction',
    'require_quantity',
    'allocate_deduction',
    'allocate_addition',
    'allocate_discard',
    'coerce_discard_reason',
]
