"""
Centralized Error Messages

Single source of truth for user-facing error text raised by the stock
services and returned by the API.

Usage:
    from lotkeeper.utils.error_messages import ErrorMessages as EM

    raise NotFoundError(EM.BATCH_NOT_FOUND.format(batch_id=batch_id))
"""


class ErrorMessages:
    """User-facing error messages - never contain HTML or special characters"""

    # ==================== GENERIC ====================
    FIELD_REQUIRED = "{field} is required."
    INVALID_INTEGER = "{field} must be a whole number."
    POSITIVE_QUANTITY_REQUIRED = "{field} must be greater than zero."
    NON_NEGATIVE_QUANTITY_REQUIRED = "{field} cannot be negative."
    INVALID_NUMBER = "{field} must be a number."
    INVALID_DATE = "{field} must be a date in YYYY-MM-DD format."
    INVALID_CHOICE = "{field} must be one of: {choices}."
    INTERNAL_ERROR = "An unexpected error occurred. Please try again."

    # ==================== PRODUCTS ====================
    PRODUCT_NOT_FOUND = "Product {product_id} not found."
    PRODUCT_CODE_NOT_FOUND = "No product matches code {code}."
    PRODUCT_NAME_REQUIRED = "Product name is required."
    PRODUCT_DUPLICATE = "A product with this SKU or barcode already exists."

    # ==================== REFERENCE DATA ====================
    REFERENCE_NOT_FOUND = "{kind} {ref_id} not found."
    REFERENCE_DUPLICATE = "A {kind} named {name} already exists."

    # ==================== STOCK ====================
    BATCH_NOT_FOUND = "Stock batch {batch_id} not found."
    BATCH_ALREADY_DISCARDED = "Stock batch {batch_id} is already discarded."
    BATCH_NUMBER_DUPLICATE = "Batch number {batch_number} already exists for this product."
    INSUFFICIENT_STOCK = "Insufficient stock: requested {requested}, available {available}."
    ZERO_ADJUSTMENT = "Adjustment must be non-zero."
    CONCURRENT_MODIFICATION = "Stock changed while this operation ran. Reload and retry."

    # ==================== EXPORTS ====================
    EXPORT_UNKNOWN_REPORT = "Unknown report {report}."
    EXPORT_UNKNOWN_FORMAT = "Unknown export format {fmt}."
