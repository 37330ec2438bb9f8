"""
Persistence boundary for stock writes.

Loads the batch snapshot a plan is computed from (row-locked where the
database supports it) and commits batch updates together with their audit
entry and discard record as one unit.
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ...models import db, BatchStatus, Location, Product, StockBatch
from ...utils.error_messages import ErrorMessages as EM
from ..cache_invalidation import invalidate_inventory_cache
from ..errors import NotFoundError, PersistenceConflict, ValidationError
from ..fifo_allocator import require_quantity

logger = logging.getLogger(__name__)


def get_product_or_404(product_id) -> Product:
    product_id = require_quantity(product_id, 'product_id')
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError(EM.PRODUCT_NOT_FOUND.format(product_id=product_id))
    return product


def get_location_or_404(location_id) -> Location:
    location = db.session.get(Location, location_id)
    if not location:
        raise NotFoundError(EM.REFERENCE_NOT_FOUND.format(kind='Location', ref_id=location_id))
    return location


def get_batch_or_404(batch_id, lock: bool = False) -> StockBatch:
    query = StockBatch.query.filter(StockBatch.id == batch_id)
    if lock:
        query = query.with_for_update()
    batch = query.one_or_none()
    if not batch:
        raise NotFoundError(EM.BATCH_NOT_FOUND.format(batch_id=batch_id))
    return batch


def load_active_batches(product_id: int, lock: bool = True) -> List[StockBatch]:
    """Active batches of one product, locked for the rest of the transaction."""
    query = StockBatch.query.filter(
        StockBatch.product_id == product_id,
        StockBatch.status == BatchStatus.ACTIVE,
    ).order_by(StockBatch.id.asc())
    if lock:
        query = query.with_for_update()
    return query.all()


def batch_number_taken(product_id: int, batch_number: str) -> bool:
    return db.session.query(
        StockBatch.query.filter_by(product_id=product_id, batch_number=batch_number).exists()
    ).scalar()


def commit_stock_change(operation: str) -> None:
    """Commit the pending batch, audit and discard rows together or not at all."""
    try:
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        logger.warning("STOCK %s: concurrent modification detected: %s", operation.upper(), exc)
        raise PersistenceConflict(EM.CONCURRENT_MODIFICATION) from exc
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("STOCK %s: integrity error: %s", operation.upper(), exc.orig)
        raise ValidationError(str(exc.orig)) from exc
    except Exception:
        db.session.rollback()
        logger.exception("STOCK %s: commit failed", operation.upper())
        raise
    invalidate_inventory_cache()


def rollback() -> None:
    """Release row locks taken for a plan that was rejected."""
    db.session.rollback()
