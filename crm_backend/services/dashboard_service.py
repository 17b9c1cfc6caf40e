import functools
import logging
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from crm_backend.extensions import db
from crm_backend.models.booking import Booking
from crm_backend.models.customer import Customer
from crm_backend.models.dashboard import DashboardStats, RecentActivity
from crm_backend.models.invoice import Invoice, InvoiceStatus
from crm_backend.models.order import Order
from crm_backend.models.user import User
from crm_backend.schemas.dashboard_schema import DashboardStatsSchema, RecentActivitySchema
from crm_backend.services.errors import ServiceError, ValidationError
from crm_backend.utils.timezone_utils import naive_utc_now, parse_datetime_string, to_naive_utc
from crm_backend.utils.transaction import db_retry

# Served while there are no orders to aggregate
DEFAULT_TRANSPORT_MODES = [
    {'mode': 'Sea', 'percentage': 65},
    {'mode': 'Air', 'percentage': 25},
    {'mode': 'Road', 'percentage': 8},
    {'mode': 'Rail', 'percentage': 2},
]
DEFAULT_TOP_DESTINATIONS = [
    {'name': 'United States', 'count': 142},
    {'name': 'China', 'count': 89},
    {'name': 'Germany', 'count': 65},
    {'name': 'United Kingdom', 'count': 52},
    {'name': 'Australia', 'count': 47},
]

PROFILE_USER_ID = '1'
DEFAULT_PROFILE = {
    'first_name': 'John',
    'last_name': 'Doe',
    'email': 'john.doe@example.com',
    'role': 'admin',
    'title': 'Logistics Manager',
    'phone': '+1 (555) 123-4567',
    'avatar': 'https://randomuser.me/api/portraits/men/42.jpg',
}

stats_schema = DashboardStatsSchema()
activity_schema_many = RecentActivitySchema(many=True)


def _wrap(what):
    """Run a read/write through db_retry and turn database errors into ServiceError."""
    def decorator(func_):
        @functools.wraps(func_)
        def wrapper(*args, **kwargs):
            try:
                return db_retry(lambda: func_(*args, **kwargs))
            except ServiceError:
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logging.error(f"Error {what}: {e}", exc_info=True)
                raise ServiceError(f"Error {what}")
        return wrapper
    return decorator


def _activity_timestamp(value):
    if not value:
        return naive_utc_now()
    try:
        return to_naive_utc(parse_datetime_string(value))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value}")


class DashboardService:
    @staticmethod
    @_wrap("fetching dashboard stats")
    def get_stats():
        """Latest stats row plus recent activity, transport mix and top destinations."""
        latest = DashboardStats.query.order_by(DashboardStats.updated_at.desc()).first()
        activities = RecentActivity.query.order_by(RecentActivity.timestamp.desc()).limit(10).all()

        mode_counts = db.session.execute(
            select(Order.transport_mode, func.count()).group_by(Order.transport_mode)
        ).all()
        total_orders = sum(count for _, count in mode_counts)
        transport_modes = [
            {
                'mode': (mode or '').capitalize(),
                'percentage': round(count / total_orders * 100) if total_orders else 0,
            }
            for mode, count in mode_counts
        ]

        count_col = func.count().label('count')
        destinations = db.session.execute(
            select(Order.destination, count_col)
            .group_by(Order.destination)
            .order_by(count_col.desc())
            .limit(5)
        ).all()
        top_destinations = [{'name': name, 'count': count} for name, count in destinations]

        stats = stats_schema.dump(latest) if latest else {}
        stats.update({
            'recentActivity': activity_schema_many.dump(activities),
            'transportModes': transport_modes or DEFAULT_TRANSPORT_MODES,
            'topDestinations': top_destinations or DEFAULT_TOP_DESTINATIONS,
        })
        return stats

    @staticmethod
    @_wrap("fetching financial summary")
    def get_financial_summary():
        row = db.session.execute(select(
            func.coalesce(func.sum(Invoice.total_amount), 0),
            func.sum(case((Invoice.status == InvoiceStatus.PAID.value, 1), else_=0)),
            func.sum(case((Invoice.status == InvoiceStatus.PENDING.value, 1), else_=0)),
            func.sum(case((Invoice.status == InvoiceStatus.OVERDUE.value, 1), else_=0)),
        )).one()
        return {
            'total_revenue': float(row[0] or 0),
            'paid_invoices': int(row[1] or 0),
            'pending_invoices': int(row[2] or 0),
            'overdue_invoices': int(row[3] or 0),
        }

    @staticmethod
    @_wrap("fetching recent customers")
    def get_recent_customers(limit=5):
        return Customer.query.order_by(Customer.created_at.desc()).limit(limit).all()

    @staticmethod
    @_wrap("fetching recent bookings")
    def get_recent_bookings(limit=5):
        return Booking.query.order_by(Booking.created_at.desc()).limit(limit).all()

    @staticmethod
    @_wrap("fetching user profile")
    def get_user_profile():
        """The demo profile user, created with default values the first time."""
        user = db.session.get(User, PROFILE_USER_ID)
        if user is None:
            now = naive_utc_now()
            user = User(id=PROFILE_USER_ID, created_at=now, last_login=now, **DEFAULT_PROFILE)
            db.session.add(user)
            db.session.commit()
        return user

    @staticmethod
    @_wrap("updating dashboard stats")
    def update_stats(data):
        """Upsert the single stats row."""
        stats = DashboardStats.query.first()
        if stats is None:
            stats = DashboardStats()
            db.session.add(stats)
        for key in ('total_customers', 'total_orders', 'total_revenue', 'pending_bookings'):
            setattr(stats, key, data.get(key))
        db.session.commit()
        return stats

    @staticmethod
    def add_activity(data):
        if not all(data.get(field) for field in ('type', 'action', 'user')):
            raise ValidationError("Required fields missing")
        return DashboardService._insert_activity(data)

    @staticmethod
    @_wrap("adding activity")
    def _insert_activity(data):
        activity = RecentActivity(
            type=data['type'],
            action=data['action'],
            user=data['user'],
            timestamp=_activity_timestamp(data.get('timestamp')),
        )
        db.session.add(activity)
        db.session.commit()
        return activity
