from crm_backend.extensions import db
from crm_backend.models.mixins import new_id, TimestampMixin


class Order(TimestampMixin, db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, index=True)
    order_number = db.Column(db.String(32), nullable=True, unique=True)
    status = db.Column(db.String(32), nullable=False, default='processing')
    transport_mode = db.Column(db.String(16), nullable=False, default='sea', index=True)
    origin = db.Column(db.String(128), nullable=True)
    destination = db.Column(db.String(128), nullable=True, index=True)
    date = db.Column(db.DateTime, nullable=True)
    total_amount = db.Column(db.Numeric(precision=12, scale=2), nullable=False, default=0)

    items = db.relationship('OrderItem', backref='order', lazy=True, cascade='all, delete-orphan')


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    price = db.Column(db.Numeric(precision=12, scale=2), nullable=False, default=0)
