from .api_responses import APIResponse
from .batch_number_generator import generate_adjustment_batch_number, generate_batch_number
from .timezone_utils import TimezoneUtils

__all__ = [
    "APIResponse",
    "TimezoneUtils",
    "generate_batch_number",
    "generate_adjustment_batch_number",
]
