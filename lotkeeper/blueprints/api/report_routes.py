import logging

from flask import Blueprint
from sqlalchemy import text

from ...extensions import db, limiter
from ...services.inventory_queries import dashboard_summary, product_batches
from ...services.product_service import ProductService
from ...utils.api_responses import APIResponse
from ._helpers import query_date

logger = logging.getLogger(__name__)

report_api_bp = Blueprint('report_api', __name__)


@report_api_bp.route('/dashboard', methods=['GET'])
def dashboard():
    return APIResponse.success(dashboard_summary(query_date()))


@report_api_bp.route('/scan/<path:code>', methods=['GET'])
def scan(code):
    """Barcode/SKU lookup for the mobile scanner: product, on-hand and FIFO batches"""
    product = ProductService.find_by_code(code)
    data = ProductService.product_payload(product)
    data['batches'] = product_batches(product.id)
    return APIResponse.success(data)


@report_api_bp.route('/health', methods=['GET'])
@limiter.exempt
def health():
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        return APIResponse.error('unhealthy', errors={'database': 'disconnected'}, status_code=503)
    return APIResponse.success({'status': 'healthy', 'database': 'connected'})
