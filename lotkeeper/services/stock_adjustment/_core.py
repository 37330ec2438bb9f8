import logging
from dataclasses import dataclass
from typing import Optional

from ...models import db, AuditAction, BatchStatus, DiscardedItem, StockBatch
from ...utils.batch_number_generator import generate_adjustment_batch_number, generate_batch_number
from ...utils.error_messages import ErrorMessages as EM
from ...utils.timezone_utils import TimezoneUtils
from ..errors import InsufficientStockError, ValidationError
from ..fifo_allocator import (
    DeductionPlan,
    allocate_addition,
    allocate_deduction,
    allocate_discard,
    coerce_discard_reason,
)
from ._audit import record_audit_entry
from ._persistence import (
    batch_number_taken,
    commit_stock_change,
    get_batch_or_404,
    get_location_or_404,
    get_product_or_404,
    load_active_batches,
    rollback,
)
from ._validation import (
    clean_text,
    parse_optional_date,
    parse_optional_id,
    require_quantity,
    require_signed_int,
)

logger = logging.getLogger(__name__)

_BATCH_NUMBER_ATTEMPTS = 5


@dataclass
class AdjustmentResult:
    """Outcome of a product-level adjustment: a new batch or a FIFO deduction."""

    product_id: int
    delta: int
    batch: Optional[StockBatch] = None
    plan: Optional[DeductionPlan] = None

    def to_dict(self) -> dict:
        return {
            'product_id': self.product_id,
            'delta': self.delta,
            'batch': self.batch.to_dict() if self.batch else None,
            'deduction': self.plan.to_dict() if self.plan else None,
        }


def _unique_batch_number(product_id, received_date, requested: Optional[str], generator=None) -> str:
    if requested:
        if batch_number_taken(product_id, requested):
            raise ValidationError(EM.BATCH_NUMBER_DUPLICATE.format(batch_number=requested), field='batch_number')
        return requested

    for _ in range(_BATCH_NUMBER_ATTEMPTS):
        candidate = generator() if generator else generate_batch_number(received_date)
        if not batch_number_taken(product_id, candidate):
            return candidate
    raise ValidationError(EM.BATCH_NUMBER_DUPLICATE.format(batch_number=candidate), field='batch_number')


def _create_batch(product, quantity, *, expiration_date=None, batch_number=None, received_date=None,
                  location_id=None, notes=None, number_generator=None) -> StockBatch:
    received = received_date or TimezoneUtils.today()
    number = _unique_batch_number(product.id, received, batch_number, number_generator)
    addition = allocate_addition(
        product.id,
        quantity,
        expiration_date=expiration_date,
        batch_number=number,
        received_date=received,
        location_id=location_id,
        notes=notes,
    )
    batch = StockBatch(
        product_id=addition.product_id,
        batch_number=addition.batch_number,
        quantity=addition.quantity,
        expiration_date=addition.expiration_date,
        received_date=addition.received_date,
        location_id=addition.location_id,
        status=BatchStatus.ACTIVE,
        notes=addition.notes,
    )
    db.session.add(batch)
    db.session.flush()
    return batch


def add_stock(
    product_id,
    quantity,
    expiration_date=None,
    batch_number=None,
    received_date=None,
    location_id=None,
    notes=None,
    reason=None,
) -> StockBatch:
    """
    Receive stock into a new batch.

    Additions never merge into an existing batch, so each receipt keeps its
    own batch number, received date and expiry.
    """
    qty = require_quantity(quantity)
    expiration = parse_optional_date(expiration_date, 'expiration_date')
    received = parse_optional_date(received_date, 'received_date')
    location_id = parse_optional_id(location_id, 'location_id')
    product = get_product_or_404(product_id)
    if location_id is not None:
        get_location_or_404(location_id)
    elif product.location_id:
        location_id = product.location_id

    batch = _create_batch(
        product,
        qty,
        expiration_date=expiration,
        batch_number=clean_text(batch_number, 64),
        received_date=received,
        location_id=location_id,
        notes=clean_text(notes),
    )
    record_audit_entry(
        product.id,
        AuditAction.ADD_STOCK,
        qty,
        batch_id=batch.id,
        reason=clean_text(reason, 255) or 'received',
        notes=clean_text(notes),
    )
    commit_stock_change('add')
    logger.info("STOCK ADD: product=%s batch=%s qty=%s exp=%s", product.id, batch.batch_number, qty, expiration)
    return batch


def deduct_stock(product_id, quantity, reason=None, notes=None) -> DeductionPlan:
    """
    FIFO deduction across a product's active batches.

    Rejects the whole request when active stock cannot cover it; no batch is
    touched and no audit entry is written in that case.
    """
    qty = require_quantity(quantity)
    product = get_product_or_404(product_id)
    batches = load_active_batches(product.id)
    plan = allocate_deduction(batches, qty)

    if not plan.is_satisfied:
        rollback()
        logger.warning("STOCK DEDUCT: product=%s rejected, requested=%s available=%s",
                       product.id, qty, plan.available)
        raise InsufficientStockError(
            EM.INSUFFICIENT_STOCK.format(requested=qty, available=plan.available),
            requested=qty,
            available=plan.available,
        )

    by_id = {batch.id: batch for batch in batches}
    for update in plan.updates:
        by_id[update.batch_id].quantity = update.new_quantity

    touched = ', '.join(f"{u.batch_id}:-{u.deducted}" for u in plan.updates)
    detail = f"FIFO batches {touched}"
    user_notes = clean_text(notes)
    record_audit_entry(
        product.id,
        AuditAction.ADJUST_STOCK,
        -qty,
        reason=clean_text(reason, 255) or 'deduction',
        notes=f"{user_notes} | {detail}" if user_notes else detail,
    )
    commit_stock_change('deduct')
    logger.info("STOCK DEDUCT: product=%s qty=%s batches=%s", product.id, qty, len(plan.updates))
    return plan


def adjust_product_stock(product_id, delta, reason=None, notes=None, expiration_date=None) -> AdjustmentResult:
    """Signed product-level adjustment: positive opens an adjustment batch, negative deducts FIFO."""
    signed = require_signed_int(delta, 'delta')
    if signed == 0:
        raise ValidationError(EM.ZERO_ADJUSTMENT, field='delta')

    product = get_product_or_404(product_id)
    if signed < 0:
        plan = deduct_stock(product.id, -signed, reason=reason or 'adjustment', notes=notes)
        return AdjustmentResult(product_id=product.id, delta=signed, plan=plan)

    expiration = parse_optional_date(expiration_date, 'expiration_date')
    batch = _create_batch(
        product,
        signed,
        expiration_date=expiration,
        location_id=product.location_id,
        notes=clean_text(notes),
        number_generator=lambda: generate_adjustment_batch_number(TimezoneUtils.utc_now()),
    )
    record_audit_entry(
        product.id,
        AuditAction.ADJUST_STOCK,
        signed,
        batch_id=batch.id,
        reason=clean_text(reason, 255) or 'adjustment',
        notes=clean_text(notes),
    )
    commit_stock_change('adjust')
    logger.info("STOCK ADJUST: product=%s +%s into batch %s", product.id, signed, batch.batch_number)
    return AdjustmentResult(product_id=product.id, delta=signed, batch=batch)


def adjust_batch(batch_id, new_quantity, reason=None, notes=None) -> StockBatch:
    """
    Overwrite one batch's quantity after a physical recount.

    Bypasses FIFO; always writes an audit entry with the signed difference,
    including a zero difference, and stamps ``last_audit_at``.
    """
    target = require_quantity(new_quantity, 'new_quantity', allow_zero=True)
    batch = get_batch_or_404(batch_id, lock=True)
    if not batch.is_active:
        rollback()
        raise ValidationError(EM.BATCH_ALREADY_DISCARDED.format(batch_id=batch.id), field='batch_id')

    previous = batch.quantity
    now = TimezoneUtils.utc_now_naive()
    batch.quantity = target
    batch.last_audit_at = now
    record_audit_entry(
        batch.product_id,
        AuditAction.ADJUST_STOCK,
        target - previous,
        batch_id=batch.id,
        reason=clean_text(reason, 255) or 'recount',
        notes=clean_text(notes),
    )
    commit_stock_change('recount')
    logger.info("STOCK RECOUNT: batch=%s %s -> %s", batch.id, previous, target)
    return batch


def discard_batch(batch_id, quantity=None, reason='other', notes=None) -> DiscardedItem:
    """
    Remove stock from one batch with a reason.

    Emptying the batch, or asking for more than it holds, leaves it at zero
    with status ``discarded``. The discard record and the audit entry carry
    the amount actually removed: ``quantity_change`` is ``-removed``, which
    equals ``-quantity`` unless the request was clamped to what the batch
    held. Summed audit changes therefore always match on-hand stock.
    """
    discard_reason = coerce_discard_reason(reason)
    batch = get_batch_or_404(batch_id, lock=True)
    try:
        outcome = allocate_discard(batch, quantity, discard_reason)
    except ValidationError:
        rollback()
        raise

    now = TimezoneUtils.utc_now_naive()
    batch.quantity = outcome.new_quantity
    batch.status = outcome.status
    if outcome.status == BatchStatus.DISCARDED:
        batch.discarded_at = now
        batch.discard_reason = outcome.reason.value

    note_text = clean_text(notes)
    item = DiscardedItem(
        batch_id=batch.id,
        product_id=batch.product_id,
        quantity=outcome.removed,
        reason=outcome.reason,
        notes=note_text,
        discarded_at=now,
    )
    db.session.add(item)
    record_audit_entry(
        batch.product_id,
        AuditAction.DISCARD,
        -outcome.removed,
        batch_id=batch.id,
        reason=outcome.reason.value,
        notes=note_text,
    )
    commit_stock_change('discard')
    logger.info(
        "STOCK DISCARD: batch=%s removed=%s (requested %s) reason=%s status=%s",
        batch.id, outcome.removed, outcome.requested, outcome.reason.value, outcome.status.value,
    )
    return item


def mark_batch_damaged(batch_id, damaged=True, reason=None) -> StockBatch:
    """Flag a batch as damaged. Quantity is unchanged, so no audit entry."""
    batch = get_batch_or_404(batch_id, lock=True)
    batch.damaged = bool(damaged)
    batch.damage_reason = clean_text(reason, 255) if damaged else None
    commit_stock_change('damage')
    logger.info("STOCK DAMAGE: batch=%s damaged=%s", batch.id, batch.damaged)
    return batch
