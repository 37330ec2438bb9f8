from ..extensions import db
from .mixins import SerializableMixin, TimestampMixin


class Product(SerializableMixin, TimestampMixin, db.Model):
    """
    Catalog entry. On-hand quantity is not stored here: it is the sum of the
    product's active stock batches.
    """
    __tablename__ = 'product'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    barcode = db.Column(db.String(64), nullable=True, unique=True)
    unit = db.Column(db.String(32), nullable=False, default='units')
    category = db.Column(db.String(64), nullable=True, index=True)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    cost_price = db.Column(db.Numeric(10, 2), nullable=True)

    department_id = db.Column(db.Integer, db.ForeignKey('department.id', ondelete='SET NULL'), nullable=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey('supplier.id', ondelete='SET NULL'), nullable=True)
    location_id = db.Column(db.Integer, db.ForeignKey('location.id', ondelete='SET NULL'), nullable=True)

    department = db.relationship('Department', backref='products')
    supplier = db.relationship('Supplier', backref='products')
    location = db.relationship('Location', backref='products')

    batches = db.relationship(
        'StockBatch',
        back_populates='product',
        lazy='dynamic',
        cascade='all, delete-orphan',
    )
    audit_entries = db.relationship(
        'AuditLogEntry',
        back_populates='product',
        lazy='dynamic',
        cascade='all, delete-orphan',
    )
    discarded_items = db.relationship(
        'DiscardedItem',
        back_populates='product',
        lazy='dynamic',
        cascade='all, delete-orphan',
    )

    __table_args__ = (
        db.CheckConstraint('min_stock_level >= 0', name='check_min_stock_level_non_negative'),
    )

    def __repr__(self):
        return f'<Product {self.name}>'
