from ..extensions import db
from .mixins import SerializableMixin, TimestampMixin


class Department(SerializableMixin, TimestampMixin, db.Model):
    """Store department a product is sold or used in"""
    __tablename__ = 'department'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<Department {self.name}>'


class Supplier(SerializableMixin, TimestampMixin, db.Model):
    __tablename__ = 'supplier'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    contact_name = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<Supplier {self.name}>'


class Location(SerializableMixin, TimestampMixin, db.Model):
    """Physical storage location (shelf, fridge, back room)"""
    __tablename__ = 'location'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return f'<Location {self.name}>'
