import enum
from datetime import date, datetime
from decimal import Decimal

from lotkeeper.extensions import db


class TimestampMixin:
    """Adds created_at and updated_at timestamps to models"""
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SerializableMixin:
    """Column-driven ``to_dict`` for JSON responses and report rows."""

    __serialize_exclude__: tuple = ()

    def to_dict(self) -> dict:
        data = {}
        for column in self.__table__.columns:
            if column.key in self.__serialize_exclude__:
                continue
            data[column.key] = _json_value(getattr(self, column.key))
        return data


def _json_value(value):
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value
