from datetime import datetime

from ..extensions import db
from .enums import AuditAction, enum_column
from .mixins import SerializableMixin


class AuditLogEntry(SerializableMixin, db.Model):
    """Append-only log of every quantity-changing stock operation"""
    __tablename__ = 'audit_log_entry'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('stock_batch.id', ondelete='SET NULL'), nullable=True, index=True)
    action = db.Column(enum_column(AuditAction), nullable=False, index=True)
    quantity_change = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    product = db.relationship('Product', back_populates='audit_entries')
    batch = db.relationship('StockBatch')

    __table_args__ = (
        db.Index('idx_audit_product_timestamp', 'product_id', 'timestamp'),
    )

    def __repr__(self):
        return f'<AuditLogEntry {self.id} | Product {self.product_id} | {self.action.value}: {self.quantity_change}>'
