from flask import request

from ...services.errors import ValidationError
from ...utils.error_messages import ErrorMessages as EM
from ...utils.timezone_utils import TimezoneUtils

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def query_date(name: str = 'as_of'):
    try:
        return TimezoneUtils.parse_date(request.args.get(name))
    except ValueError:
        raise ValidationError(EM.INVALID_DATE.format(field=name), field=name)


def query_int(name: str, default=None):
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(EM.INVALID_INTEGER.format(field=name), field=name)


def as_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES
