import logging

from flask import Blueprint, request

from ...models import DiscardedItem
from ...services.inventory_queries import expired_batches, expiring_soon_batches, low_stock_products, total_on_hand
from ...services.stock_adjustment import (
    add_stock,
    adjust_batch,
    adjust_product_stock,
    deduct_stock,
    discard_batch,
    mark_batch_damaged,
)
from ...utils.api_responses import APIResponse
from ._helpers import as_bool, query_date, query_int

logger = logging.getLogger(__name__)

stock_api_bp = Blueprint('stock_api', __name__, url_prefix='/stock')


@stock_api_bp.route('/add', methods=['POST'])
def add():
    """Receive stock into a new batch"""
    data = APIResponse.handle_request_content()
    batch = add_stock(
        product_id=data.get('product_id'),
        quantity=data.get('quantity'),
        expiration_date=data.get('expiration_date') or data.get('expiry_date'),
        batch_number=data.get('batch_number'),
        received_date=data.get('received_date'),
        location_id=data.get('location_id'),
        notes=data.get('notes'),
        reason=data.get('reason'),
    )
    return APIResponse.success(batch.to_dict(), 'Stock added', 201)


@stock_api_bp.route('/deduct', methods=['POST'])
def deduct():
    """FIFO deduction across the product's active batches"""
    data = APIResponse.handle_request_content()
    plan = deduct_stock(
        product_id=data.get('product_id'),
        quantity=data.get('quantity'),
        reason=data.get('reason'),
        notes=data.get('notes'),
    )
    payload = plan.to_dict()
    payload['on_hand'] = total_on_hand(int(data['product_id']))
    return APIResponse.success(payload, 'Stock deducted')


@stock_api_bp.route('/adjust', methods=['POST'])
def adjust():
    data = APIResponse.handle_request_content()
    result = adjust_product_stock(
        product_id=data.get('product_id'),
        delta=data.get('delta', data.get('quantity')),
        reason=data.get('reason'),
        notes=data.get('notes'),
        expiration_date=data.get('expiration_date'),
    )
    payload = result.to_dict()
    payload['on_hand'] = total_on_hand(result.product_id)
    return APIResponse.success(payload, 'Stock adjusted')


@stock_api_bp.route('/batches/<int:batch_id>', methods=['PUT'])
def recount_batch(batch_id):
    """Set a batch's quantity after a physical count"""
    data = APIResponse.handle_request_content()
    batch = adjust_batch(
        batch_id,
        data.get('new_quantity', data.get('quantity')),
        reason=data.get('reason'),
        notes=data.get('notes'),
    )
    return APIResponse.success(batch.to_dict(), 'Batch updated')


@stock_api_bp.route('/batches/<int:batch_id>/discard', methods=['POST'])
def discard(batch_id):
    data = APIResponse.handle_request_content()
    item = discard_batch(
        batch_id,
        quantity=data.get('quantity'),
        reason=data.get('reason') or 'other',
        notes=data.get('notes'),
    )
    return APIResponse.success(
        {'discarded': item.to_dict(), 'batch': item.batch.to_dict()},
        'Batch discarded' if not item.batch.is_active else 'Stock discarded',
    )


@stock_api_bp.route('/batches/<int:batch_id>/damage', methods=['PUT'])
def damage(batch_id):
    data = APIResponse.handle_request_content()
    batch = mark_batch_damaged(
        batch_id,
        damaged=as_bool(data.get('damaged'), default=True),
        reason=data.get('reason') or data.get('damage_reason'),
    )
    return APIResponse.success(batch.to_dict(), 'Batch damage flag updated')


@stock_api_bp.route('/expiring', methods=['GET'])
def expiring():
    return APIResponse.success(expiring_soon_batches(query_date()))


@stock_api_bp.route('/expired', methods=['GET'])
def expired():
    return APIResponse.success(expired_batches(query_date()))


@stock_api_bp.route('/low', methods=['GET'])
def low_stock():
    return APIResponse.success(low_stock_products())


@stock_api_bp.route('/discarded', methods=['GET'])
def discarded():
    """Discard history, newest first"""
    query = DiscardedItem.query
    product_id = query_int('product_id')
    if product_id is not None:
        query = query.filter(DiscardedItem.product_id == product_id)
    items = query.order_by(DiscardedItem.discarded_at.desc(), DiscardedItem.id.desc()).limit(
        query_int('limit', 100)
    ).all()
    return APIResponse.success([item.to_dict() for item in items])
