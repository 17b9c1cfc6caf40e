from decimal import Decimal
from enum import Enum
from crm_backend.extensions import db
from crm_backend.models.mixins import new_id, TimestampMixin


class InvoiceStatus(Enum):
    PAID = "paid"
    DUE = "due"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    PENDING = "pending"


INVOICE_NUMBER_PREFIX = 'INV-'


class Invoice(TimestampMixin, db.Model):
    __tablename__ = 'invoices'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    invoice_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id'), nullable=False, index=True)
    booking_id = db.Column(db.String(36), db.ForeignKey('bookings.id'), nullable=True, index=True)
    # Supplied by the caller; not recomputed from the items
    total_amount = db.Column(db.Numeric(precision=12, scale=2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=InvoiceStatus.PENDING.value, index=True)
    issue_date = db.Column(db.Date, nullable=True, index=True)
    due_date = db.Column(db.Date, nullable=True)

    customer = db.relationship('Customer', lazy='joined')
    items = db.relationship('InvoiceItem', backref='invoice', lazy=True,
                            cascade='all, delete-orphan', passive_deletes=True,
                            order_by='InvoiceItem.position')

    @property
    def customer_name(self):
        return self.customer.company_name if self.customer else None

    @property
    def items_total(self):
        return sum((Decimal(str(item.amount or 0)) for item in self.items), Decimal('0'))


class InvoiceItem(db.Model):
    __tablename__ = 'invoice_items'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    invoice_id = db.Column(db.String(36), db.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(precision=12, scale=2), nullable=False, default=0)
    amount = db.Column(db.Numeric(precision=12, scale=2), nullable=False, default=0)
