"""
Stock Adjustment Service - Canonical Entry Point

Every quantity change to a stock batch goes through this package. Each
operation loads its batch snapshot, plans the change with the FIFO
allocator, and commits the batch updates together with one audit entry.
"""

from ._audit import get_audit_log, record_audit_entry
from ._core import (
    AdjustmentResult,
    add_stock,
    adjust_batch,
    adjust_product_stock,
    deduct_stock,
    discard_batch,
    mark_batch_damaged,
)
from ._persistence import get_batch_or_404, get_product_or_404, load_active_batches

__all__ = [
    'AdjustmentResult',
    'add_stock',
    'adjust_batch',
    'adjust_product_stock',
    'deduct_stock',
    'discard_batch',
    'mark_batch_damaged',
    'get_audit_log',
    'record_audit_entry',
    'get_batch_or_404',
    'get_product_or_404',
    'load_active_batches',
]
