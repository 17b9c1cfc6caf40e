from crm_backend.extensions import db
from crm_backend.models.mixins import new_id, TimestampMixin


class Customer(TimestampMixin, db.Model):
    __tablename__ = 'customers'

    # UUIDs for new rows; legacy rows use 'c<n>'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    company_name = db.Column(db.String(128), nullable=False, index=True)
    contact_person = db.Column(db.String(128), nullable=True)
    email = db.Column(db.String(128), nullable=True, index=True)
    phone = db.Column(db.String(32), nullable=True)
    status = db.Column(db.String(32), nullable=False, default='active', index=True)
    address = db.Column(db.String(256), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    state = db.Column(db.String(128), nullable=True)
    zipcode = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(128), nullable=True)
    total_spent = db.Column(db.Numeric(precision=12, scale=2), nullable=False, default=0)
    total_orders = db.Column(db.Integer, nullable=False, default=0)

    # Bookings and invoices are deliberately absent: the FK on their side
    # must block the delete instead of the ORM nulling or cascading them.
    contacts = db.relationship('Contact', backref='customer', lazy=True, cascade='all, delete-orphan')
    orders = db.relationship('Order', backref='customer', lazy=True, cascade='all, delete-orphan')
    activities = db.relationship('Activity', backref='customer', lazy=True, cascade='all, delete-orphan')


class Contact(db.Model):
    __tablename__ = 'contacts'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    position = db.Column(db.String(128), nullable=True)
    email = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)


class Activity(db.Model):
    __tablename__ = 'activities'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(32), nullable=True)
    description = db.Column(db.String(512), nullable=True)
    user = db.Column(db.String(128), nullable=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
