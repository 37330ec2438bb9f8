"""
Read projections over stock batches: on-hand totals, low stock, expiring and
expired batches, and the dashboard summary.

Batches are the only source of on-hand quantity. The expiring and expired
bounds come from the application's ``ExpiryClassifier``.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func

from ..extensions import cache
from ..models import db, BatchStatus, Location, Product, StockBatch
from ..utils.timezone_utils import TimezoneUtils
from .cache_invalidation import dashboard_cache_key
from .expiry import ExpiryClassifier, get_expiry_classifier

logger = logging.getLogger(__name__)


def _active_stock():
    return StockBatch.query.filter(StockBatch.status == BatchStatus.ACTIVE)


def total_on_hand(product_id: int) -> int:
    """Sum of quantity over the product's active batches."""
    total = db.session.query(func.coalesce(func.sum(StockBatch.quantity), 0)).filter(
        StockBatch.product_id == product_id,
        StockBatch.status == BatchStatus.ACTIVE,
    ).scalar()
    return int(total or 0)


def on_hand_by_product() -> Dict[int, int]:
    rows = db.session.query(
        StockBatch.product_id,
        func.coalesce(func.sum(StockBatch.quantity), 0),
    ).filter(StockBatch.status == BatchStatus.ACTIVE).group_by(StockBatch.product_id).all()
    return {product_id: int(total) for product_id, total in rows}


def low_stock_products() -> List[dict]:
    """Products whose on-hand total is below their minimum stock level, largest shortage first."""
    totals = on_hand_by_product()
    rows = []
    for product in Product.query.filter(Product.min_stock_level > 0).order_by(Product.name.asc()).all():
        on_hand = totals.get(product.id, 0)
        if on_hand < product.min_stock_level:
            rows.append({
                'product_id': product.id,
                'product_name': product.name,
                'sku': product.sku,
                'barcode': product.barcode,
                'category': product.category,
                'unit': product.unit,
                'on_hand': on_hand,
                'min_stock_level': product.min_stock_level,
                'shortage': product.min_stock_level - on_hand,
            })
    rows.sort(key=lambda row: (-row['shortage'], row['product_name']))
    return rows


def _batch_row(batch: StockBatch, classifier: ExpiryClassifier, as_of: date) -> dict:
    classification = classifier.classify(batch.expiration_date, as_of)
    product = batch.product
    return {
        'batch_id': batch.id,
        'batch_number': batch.batch_number,
        'product_id': batch.product_id,
        'product_name': product.name if product else None,
        'sku': product.sku if product else None,
        'category': product.category if product else None,
        'department': product.department.name if product and product.department else None,
        'supplier': product.supplier.name if product and product.supplier else None,
        'quantity': batch.quantity,
        'unit': product.unit if product else None,
        'expiration_date': batch.expiration_date.isoformat() if batch.expiration_date else None,
        'received_date': batch.received_date.isoformat() if batch.received_date else None,
        'location': batch.location.name if batch.location else None,
        'damaged': batch.damaged,
        'expiry_status': classification.status.value,
        'days_remaining': classification.days_remaining,
    }


def product_batches(product_id: int, include_discarded: bool = False, as_of: Optional[date] = None) -> List[dict]:
    """A product's batches in FIFO order, each with its expiry classification."""
    classifier = get_expiry_classifier()
    as_of = TimezoneUtils.to_business_date(as_of)
    query = StockBatch.query.filter(StockBatch.product_id == product_id)
    if not include_discarded:
        query = query.filter(StockBatch.status == BatchStatus.ACTIVE)
    batches = query.order_by(
        StockBatch.expiration_date.is_(None),
        StockBatch.expiration_date.asc(),
        StockBatch.id.asc(),
    ).all()
    rows = []
    for batch in batches:
        row = _batch_row(batch, classifier, as_of)
        row['status'] = batch.status.value
        rows.append(row)
    return rows


def expiring_soon_batches(as_of: Optional[date] = None) -> List[dict]:
    """Active batches with stock that expire within the warning window, soonest first."""
    classifier = get_expiry_classifier()
    start, end = classifier.warning_window(as_of)
    batches = _active_stock().filter(
        StockBatch.quantity > 0,
        StockBatch.expiration_date.isnot(None),
        StockBatch.expiration_date >= start,
        StockBatch.expiration_date <= end,
    ).join(Product).order_by(StockBatch.expiration_date.asc(), Product.name.asc(), StockBatch.id.asc()).all()
    return [_batch_row(batch, classifier, start) for batch in batches]


def expired_batches(as_of: Optional[date] = None) -> List[dict]:
    """Active batches with stock whose expiration date has passed."""
    classifier = get_expiry_classifier()
    today = TimezoneUtils.to_business_date(as_of)
    batches = _active_stock().filter(
        StockBatch.quantity > 0,
        StockBatch.expiration_date.isnot(None),
        StockBatch.expiration_date < today,
    ).join(Product).order_by(StockBatch.expiration_date.asc(), Product.name.asc(), StockBatch.id.asc()).all()
    return [_batch_row(batch, classifier, today) for batch in batches]


def inventory_rows(as_of: Optional[date] = None) -> List[dict]:
    """Every active batch with stock, for the full inventory report."""
    classifier = get_expiry_classifier()
    today = TimezoneUtils.to_business_date(as_of)
    batches = _active_stock().filter(StockBatch.quantity > 0).join(Product).order_by(
        Product.name.asc(),
        StockBatch.expiration_date.is_(None),
        StockBatch.expiration_date.asc(),
        StockBatch.id.asc(),
    ).all()
    return [_batch_row(batch, classifier, today) for batch in batches]


def _compute_dashboard(as_of: date, classifier: ExpiryClassifier) -> dict:
    start, end = classifier.warning_window(as_of)
    active_with_stock = _active_stock().filter(StockBatch.quantity > 0)
    return {
        'as_of': as_of.isoformat(),
        'warning_days': classifier.warning_days,
        'total_products': Product.query.count(),
        'total_stock_batches': _active_stock().count(),
        'total_units': int(
            db.session.query(func.coalesce(func.sum(StockBatch.quantity), 0))
            .filter(StockBatch.status == BatchStatus.ACTIVE).scalar() or 0
        ),
        'expiring_soon': active_with_stock.filter(
            StockBatch.expiration_date >= start, StockBatch.expiration_date <= end
        ).count(),
        'expired': active_with_stock.filter(StockBatch.expiration_date < start).count(),
        'damaged': _active_stock().filter(StockBatch.damaged.is_(True)).count(),
        'low_stock': len(low_stock_products()),
        'categories': db.session.query(func.count(func.distinct(Product.category)))
        .filter(Product.category.isnot(None)).scalar() or 0,
        'locations': db.session.query(func.count(Location.id)).scalar() or 0,
    }


def dashboard_summary(as_of: Optional[date] = None) -> dict:
    """Headline counts, cached until the next stock, product or reference-data write."""
    classifier = get_expiry_classifier()
    as_of = TimezoneUtils.to_business_date(as_of)
    key = dashboard_cache_key(as_of, classifier.warning_days)
    cached = cache.get(key)
    if cached is not None:
        return cached
    summary = _compute_dashboard(as_of, classifier)
    cache.set(key, summary)
    logger.debug("Dashboard summary computed for %s", as_of)
    return summary
