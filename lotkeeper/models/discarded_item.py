from datetime import datetime

from ..extensions import db
from .enums import DiscardReason, enum_column
from .mixins import SerializableMixin


class DiscardedItem(SerializableMixin, db.Model):
    """Record of a discard event. Written once by the discard operation, never updated."""
    __tablename__ = 'discarded_item'

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('stock_batch.id', ondelete='SET NULL'), nullable=True, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(enum_column(DiscardReason, length=16), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    discarded_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    batch = db.relationship('StockBatch')
    product = db.relationship('Product', back_populates='discarded_items')

    __table_args__ = (
        db.CheckConstraint('quantity >= 0', name='check_discarded_quantity_non_negative'),
    )

    def __repr__(self):
        return f'<DiscardedItem {self.id} | Batch {self.batch_id} | {self.quantity} ({self.reason.value})>'
