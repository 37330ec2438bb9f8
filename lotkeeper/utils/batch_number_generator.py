from __future__ import annotations

import secrets
from datetime import date, datetime

from .timezone_utils import TimezoneUtils

__all__ = [
    "BATCH_PREFIX",
    "ADJUSTMENT_PREFIX",
    "generate_batch_number",
    "generate_adjustment_batch_number",
]

BATCH_PREFIX = "B"
ADJUSTMENT_PREFIX = "ADJ"


def generate_batch_number(received: date | None = None) -> str:
    """
    Generate a receipt batch number.

    Format: B{YYMMDD}-{NNN}
    - YYMMDD: receipt date
    - NNN: 3-digit random suffix; callers retry on collision
    """
    received = received or TimezoneUtils.today()
    return f"{BATCH_PREFIX}{received:%y%m%d}-{secrets.randbelow(1000):03d}"


def generate_adjustment_batch_number(moment: datetime | None = None) -> str:
    """Batch number for stock created by a product-level positive adjustment."""
    moment = moment or TimezoneUtils.utc_now()
    return f"{ADJUSTMENT_PREFIX}-{moment:%y%m%d%H%M%S}-{secrets.randbelow(100):02d}"
