"""Models package - imports all models for the application"""
from ..extensions import db

# Import in dependency order for PostgreSQL table creation
from .enums import AuditAction, BatchStatus, DiscardReason
from .reference import Department, Supplier, Location
from .product import Product
from .stock_batch import StockBatch
from .discarded_item import DiscardedItem
from .audit_log import AuditLogEntry

__all__ = [
    'db',
    'AuditAction',
    'BatchStatus',
    'DiscardReason',
    'Department',
    'Supplier',
    'Location',
    'Product',
    'StockBatch',
    'DiscardedItem',
    'AuditLogEntry',
]
