"""CRUD for the lookup tables products point at: departments, suppliers, locations."""

import logging
from typing import Dict, List, Type

from sqlalchemy.exc import IntegrityError

from ..models import db, Department, Location, Product, StockBatch, Supplier
from ..utils.error_messages import ErrorMessages as EM
from .cache_invalidation import invalidate_inventory_cache
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

REFERENCE_MODELS: Dict[str, Type[db.Model]] = {
    'department': Department,
    'supplier': Supplier,
    'location': Location,
}

EDITABLE_FIELDS: Dict[str, tuple] = {
    'department': ('name', 'description'),
    'supplier': ('name', 'contact_name', 'phone', 'email', 'notes'),
    'location': ('name', 'description'),
}


class ReferenceDataService:

    @staticmethod
    def _model(kind: str):
        model = REFERENCE_MODELS.get(kind)
        if model is None:
            raise NotFoundError(EM.REFERENCE_NOT_FOUND.format(kind='Reference type', ref_id=kind))
        return model

    @staticmethod
    def _label(kind: str) -> str:
        return kind.capitalize()

    @staticmethod
    def list(kind: str) -> List:
        model = ReferenceDataService._model(kind)
        return model.query.order_by(model.name.asc()).all()

    @staticmethod
    def get(kind: str, ref_id):
        model = ReferenceDataService._model(kind)
        record = db.session.get(model, ref_id) if ref_id is not None else None
        if not record:
            raise NotFoundError(EM.REFERENCE_NOT_FOUND.format(kind=ReferenceDataService._label(kind), ref_id=ref_id))
        return record

    @staticmethod
    def _apply(kind: str, record, data: dict, creating: bool):
        for field in EDITABLE_FIELDS[kind]:
            if field not in data:
                continue
            value = data.get(field)
            if isinstance(value, str):
                value = value.strip() or None
            setattr(record, field, value)
        if creating or 'name' in data:
            if not record.name:
                raise ValidationError(EM.FIELD_REQUIRED.format(field='name'), field='name')

    @staticmethod
    def _commit(kind: str, record):
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ValidationError(
                EM.REFERENCE_DUPLICATE.format(kind=kind, name=record.name), field='name'
            ) from exc
        invalidate_inventory_cache()

    @staticmethod
    def create(kind: str, data: dict):
        model = ReferenceDataService._model(kind)
        record = model()
        ReferenceDataService._apply(kind, record, data or {}, creating=True)
        db.session.add(record)
        ReferenceDataService._commit(kind, record)
        logger.info("Created %s %s (%s)", kind, record.id, record.name)
        return record

    @staticmethod
    def update(kind: str, ref_id, data: dict):
        record = ReferenceDataService.get(kind, ref_id)
        ReferenceDataService._apply(kind, record, data or {}, creating=False)
        ReferenceDataService._commit(kind, record)
        logger.info("Updated %s %s", kind, record.id)
        return record

    @staticmethod
    def delete(kind: str, ref_id) -> None:
        """Delete a record; products and batches pointing at it are unlinked."""
        record = ReferenceDataService.get(kind, ref_id)
        column = getattr(Product, f'{kind}_id')
        Product.query.filter(column == record.id).update({column: None}, synchronize_session=False)
        if kind == 'location':
            StockBatch.query.filter(StockBatch.location_id == record.id).update(
                {StockBatch.location_id: None}, synchronize_session=False
            )
        db.session.delete(record)
        db.session.commit()
        invalidate_inventory_cache()
        logger.info("Deleted %s %s", kind, ref_id)
