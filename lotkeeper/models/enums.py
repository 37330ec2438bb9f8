from __future__ import annotations

import enum

from ..extensions import db


class BatchStatus(str, enum.Enum):
    ACTIVE = "active"
    DISCARDED = "discarded"


class DiscardReason(str, enum.Enum):
    EXPIRED = "expired"
    DAMAGED = "damaged"
    OTHER = "other"


class AuditAction(str, enum.Enum):
    """Closed set of quantity-changing operations recorded in the audit log."""

    ADD_STOCK = "add_stock"
    ADJUST_STOCK = "adjust_stock"
    DISCARD = "discard"


def enum_column(enum_cls: type[enum.Enum], length: int = 32) -> db.Enum:
    """Store enum values (not member names) in a portable VARCHAR column."""
    return db.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )
