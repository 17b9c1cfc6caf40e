from enum import Enum
from crm_backend.extensions import db
from crm_backend.models.mixins import new_id, TimestampMixin


class BookingStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    LOST = "lost"


class TransportMode(Enum):
    SEA = "sea"
    AIR = "air"
    ROAD = "road"
    RAIL = "rail"


# Statuses that still count as an open enquiry
OPEN_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.IN_PROGRESS.value)


class Booking(TimestampMixin, db.Model):
    __tablename__ = 'bookings'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    booking_number = db.Column(db.String(32), nullable=True, unique=True)
    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id'), nullable=False, index=True)
    origin = db.Column(db.String(128), nullable=False)
    destination = db.Column(db.String(128), nullable=False)
    cargo_type = db.Column(db.String(64), nullable=False)
    transport_mode = db.Column(db.String(16), nullable=False, default=TransportMode.SEA.value, index=True)
    container_size = db.Column(db.String(16), nullable=False, default='20ft')
    weight = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=BookingStatus.PENDING.value, index=True)
    pickup_date = db.Column(db.Date, nullable=True)
    delivery_date = db.Column(db.Date, nullable=True)
    created_by = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    customer = db.relationship('Customer', lazy='joined')

    @property
    def customer_name(self):
        return self.customer.company_name if self.customer else None
