"""Input coercion for stock operations. Every failure is a ValidationError."""

from datetime import date
from typing import Optional

from ...utils.error_messages import ErrorMessages as EM
from ...utils.timezone_utils import TimezoneUtils
from ..errors import ValidationError
from ..fifo_allocator import require_quantity

__all__ = [
    'require_quantity',
    'require_signed_int',
    'parse_optional_date',
    'parse_optional_id',
    'clean_text',
]


def parse_optional_date(value, field: str) -> Optional[date]:
    try:
        return TimezoneUtils.parse_date(value)
    except ValueError:
        raise ValidationError(EM.INVALID_DATE.format(field=field), field=field)


def parse_optional_id(value, field: str) -> Optional[int]:
    if value is None or value == '':
        return None
    return require_quantity(value, field)


def require_signed_int(value, field: str) -> int:
    """Whole number of either sign; zero is left to the caller."""
    if value is None or value == '':
        raise ValidationError(EM.FIELD_REQUIRED.format(field=field), field=field)
    if isinstance(value, bool):
        raise ValidationError(EM.INVALID_INTEGER.format(field=field), field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(EM.INVALID_INTEGER.format(field=field), field=field)


def clean_text(value, max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:max_length] if max_length else text
