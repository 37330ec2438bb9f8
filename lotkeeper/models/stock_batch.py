from ..extensions import db
from .enums import BatchStatus, enum_column
from .mixins import SerializableMixin, TimestampMixin
from ..utils.timezone_utils import TimezoneUtils


class StockBatch(SerializableMixin, TimestampMixin, db.Model):
    """
    One received lot of a product with its own quantity and expiration date.
    Batches are the source of truth for on-hand stock.
    """
    __tablename__ = 'stock_batch'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    batch_number = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    expiration_date = db.Column(db.Date, nullable=True, index=True)
    received_date = db.Column(db.Date, nullable=False, default=TimezoneUtils.today)
    location_id = db.Column(db.Integer, db.ForeignKey('location.id', ondelete='SET NULL'), nullable=True)
    status = db.Column(enum_column(BatchStatus, length=16), nullable=False, default=BatchStatus.ACTIVE, index=True)
    notes = db.Column(db.Text, nullable=True)

    # Damage flag does not change quantity; damaged stock is discarded separately
    damaged = db.Column(db.Boolean, nullable=False, default=False)
    damage_reason = db.Column(db.String(255), nullable=True)

    discarded_at = db.Column(db.DateTime, nullable=True)
    discard_reason = db.Column(db.String(32), nullable=True)
    last_audit_at = db.Column(db.DateTime, nullable=True)

    # Optimistic lock; a stale write raises StaleDataError at flush
    version_id = db.Column(db.Integer, nullable=False)

    product = db.relationship('Product', back_populates='batches')
    location = db.relationship('Location')

    __mapper_args__ = {'version_id_col': version_id}
    __table_args__ = (
        db.UniqueConstraint('product_id', 'batch_number', name='uq_stock_batch_product_batch_number'),
        db.CheckConstraint('quantity >= 0', name='check_batch_quantity_non_negative'),
        db.Index('ix_stock_batch_product_status', 'product_id', 'status'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == BatchStatus.ACTIVE

    def __repr__(self):
        return f'<StockBatch {self.id} {self.batch_number}: {self.quantity} ({self.status.value if self.status else None})>'
