from marshmallow import EXCLUDE, fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from crm_backend.models.booking import Booking, BookingStatus, TransportMode

BOOKING_STATUSES = [s.value for s in BookingStatus]
TRANSPORT_MODES = [m.value for m in TransportMode]


class BookingSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Booking
        include_fk = True
        unknown = EXCLUDE
    id = auto_field(dump_only=True)
    booking_number = auto_field()
    customer_id = auto_field()
    customer_name = fields.String(dump_only=True)
    origin = auto_field()
    destination = auto_field()
    cargo_type = auto_field()
    transport_mode = auto_field(validate=validate.OneOf(TRANSPORT_MODES))
    container_size = auto_field()
    weight = auto_field()
    status = auto_field(validate=validate.OneOf(BOOKING_STATUSES))
    pickup_date = auto_field()
    delivery_date = auto_field()
    created_by = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)


class BookingStatusSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Booking
        fields = ('status',)
        unknown = EXCLUDE
    status = auto_field(required=True, validate=validate.OneOf(BOOKING_STATUSES))
