import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..models import db, Product
from ..utils.error_messages import ErrorMessages as EM
from .cache_invalidation import invalidate_inventory_cache
from .errors import NotFoundError, ValidationError
from .fifo_allocator import require_quantity
from .inventory_queries import total_on_hand
from .reference_data import ReferenceDataService

logger = logging.getLogger(__name__)

TEXT_FIELDS = {
    'name': 128,
    'description': None,
    'sku': 64,
    'barcode': 64,
    'unit': 32,
    'category': 64,
}
REFERENCE_FIELDS = {
    'department_id': 'department',
    'supplier_id': 'supplier',
    'location_id': 'location',
}


class ProductService:

    @staticmethod
    def get_product(product_id) -> Product:
        product = db.session.get(Product, product_id) if product_id is not None else None
        if not product:
            raise NotFoundError(EM.PRODUCT_NOT_FOUND.format(product_id=product_id))
        return product

    @staticmethod
    def list_products(
        search: Optional[str] = None,
        category: Optional[str] = None,
        department_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        location_id: Optional[int] = None,
    ) -> List[Product]:
        query = Product.query
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Product.name.ilike(pattern),
                Product.sku.ilike(pattern),
                Product.barcode.ilike(pattern),
            ))
        if category:
            query = query.filter(Product.category == category)
        if department_id is not None:
            query = query.filter(Product.department_id == department_id)
        if supplier_id is not None:
            query = query.filter(Product.supplier_id == supplier_id)
        if location_id is not None:
            query = query.filter(Product.location_id == location_id)
        return query.order_by(Product.name.asc(), Product.id.asc()).all()

    @staticmethod
    def find_by_code(code: str) -> Product:
        """Scanner lookup: exact barcode first, then SKU."""
        normalized = (code or '').strip()
        if not normalized:
            raise ValidationError(EM.FIELD_REQUIRED.format(field='code'), field='code')
        product = Product.query.filter(Product.barcode == normalized).first()
        if product is None:
            product = Product.query.filter(func.lower(Product.sku) == normalized.lower()).first()
        if product is None:
            raise NotFoundError(EM.PRODUCT_CODE_NOT_FOUND.format(code=normalized))
        return product

    @staticmethod
    def _apply_fields(product: Product, data: dict) -> None:
        for field, max_length in TEXT_FIELDS.items():
            if field not in data:
                continue
            value = data.get(field)
            value = str(value).strip() if value is not None else None
            if max_length and value:
                value = value[:max_length]
            setattr(product, field, value or None)

        if 'unit' in data and not product.unit:
            product.unit = 'units'

        if 'min_stock_level' in data:
            level = data.get('min_stock_level')
            product.min_stock_level = 0 if level in (None, '') else require_quantity(
                level, 'min_stock_level', allow_zero=True
            )

        if 'cost_price' in data:
            product.cost_price = ProductService._parse_price(data.get('cost_price'))

        for field, kind in REFERENCE_FIELDS.items():
            if field not in data:
                continue
            ref_id = data.get(field)
            if ref_id in (None, ''):
                setattr(product, field, None)
                continue
            ref_id = require_quantity(ref_id, field)
            with db.session.no_autoflush:
                ReferenceDataService.get(kind, ref_id)
            setattr(product, field, ref_id)

        if not product.name:
            raise ValidationError(EM.PRODUCT_NAME_REQUIRED, field='name')

    @staticmethod
    def _parse_price(value) -> Optional[Decimal]:
        if value in (None, ''):
            return None
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(EM.INVALID_NUMBER.format(field='cost_price'), field='cost_price')
        if not price.is_finite():
            raise ValidationError(EM.INVALID_NUMBER.format(field='cost_price'), field='cost_price')
        if price < 0:
            raise ValidationError(EM.NON_NEGATIVE_QUANTITY_REQUIRED.format(field='cost_price'), field='cost_price')
        return price.quantize(Decimal('0.01'))

    @staticmethod
    def _commit() -> None:
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ValidationError(EM.PRODUCT_DUPLICATE) from exc
        invalidate_inventory_cache()

    @staticmethod
    def create_product(data: dict) -> Product:
        product = Product(unit='units', min_stock_level=0)
        try:
            ProductService._apply_fields(product, data or {})
        except (ValidationError, NotFoundError):
            db.session.rollback()
            raise
        db.session.add(product)
        ProductService._commit()
        logger.info("Created product %s (%s)", product.id, product.name)
        return product

    @staticmethod
    def update_product(product_id, data: dict) -> Product:
        product = ProductService.get_product(product_id)
        try:
            ProductService._apply_fields(product, data or {})
        except (ValidationError, NotFoundError):
            db.session.rollback()
            raise
        ProductService._commit()
        logger.info("Updated product %s", product.id)
        return product

    @staticmethod
    def delete_product(product_id) -> None:
        """Delete a product with its batches, discard records and audit history."""
        product = ProductService.get_product(product_id)
        db.session.delete(product)
        db.session.commit()
        invalidate_inventory_cache()
        logger.info("Deleted product %s", product_id)

    @staticmethod
    def product_payload(product: Product) -> dict:
        data = product.to_dict()
        data['on_hand'] = total_on_hand(product.id)
        data['department'] = product.department.name if product.department else None
        data['supplier'] = product.supplier.name if product.supplier else None
        data['location'] = product.location.name if product.location else None
        return data
