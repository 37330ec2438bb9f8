from flask import Blueprint, request

from ...services.inventory_queries import product_batches
from ...services.product_service import ProductService
from ...services.stock_adjustment import get_audit_log
from ...utils.api_responses import APIResponse
from ._helpers import as_bool, query_date, query_int

product_api_bp = Blueprint('product_api', __name__, url_prefix='/products')


@product_api_bp.route('', methods=['GET'])
def list_products():
    """List products with on-hand totals; filter by search text or reference ids"""
    products = ProductService.list_products(
        search=request.args.get('search'),
        category=request.args.get('category'),
        department_id=query_int('department_id'),
        supplier_id=query_int('supplier_id'),
        location_id=query_int('location_id'),
    )
    return APIResponse.success([ProductService.product_payload(p) for p in products])


@product_api_bp.route('', methods=['POST'])
def create_product():
    product = ProductService.create_product(APIResponse.handle_request_content())
    return APIResponse.success(ProductService.product_payload(product), 'Product created', 201)


@product_api_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = ProductService.get_product(product_id)
    data = ProductService.product_payload(product)
    data['batches'] = product_batches(product.id)
    return APIResponse.success(data)


@product_api_bp.route('/<int:product_id>', methods=['PUT', 'PATCH'])
def update_product(product_id):
    product = ProductService.update_product(product_id, APIResponse.handle_request_content())
    return APIResponse.success(ProductService.product_payload(product), 'Product updated')


@product_api_bp.route('/<int:product_id>', methods=['DELETE'])
def delete_product(product_id):
    ProductService.delete_product(product_id)
    return APIResponse.success(None, 'Product deleted')


@product_api_bp.route('/<int:product_id>/batches', methods=['GET'])
def list_product_batches(product_id):
    """Batches in FIFO order with expiry status"""
    product = ProductService.get_product(product_id)
    rows = product_batches(
        product.id,
        include_discarded=as_bool(request.args.get('include_discarded')),
        as_of=query_date(),
    )
    return APIResponse.success(rows)


@product_api_bp.route('/<int:product_id>/audit', methods=['GET'])
def product_audit_log(product_id):
    product = ProductService.get_product(product_id)
    entries = get_audit_log(
        product_id=product.id,
        action=request.args.get('action') or None,
        limit=query_int('limit', 100),
    )
    return APIResponse.success([entry.to_dict() for entry in entries])
