import logging
from decimal import Decimal
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from crm_backend.extensions import db
from crm_backend.models.booking import Booking, OPEN_BOOKING_STATUSES
from crm_backend.models.customer import Customer, Contact, Activity
from crm_backend.models.invoice import Invoice, InvoiceStatus
from crm_backend.models.order import Order
from crm_backend.services.communication_service import CommunicationService
from crm_backend.services.demo_fixtures import get_fixture, fixture_conflict, fallback_customer
from crm_backend.services.errors import (
    ServiceError, NotFoundError, ForeignKeyConstraintError,
)
from crm_backend.utils.transaction import db_retry, transaction, is_foreign_key_violation

# Invoice statuses that still count as money owed
RECEIVABLE_STATUSES = (InvoiceStatus.DUE.value, InvoiceStatus.DUE_SOON.value, InvoiceStatus.OVERDUE.value)


def normalize_customer_id(customer_id):
    """Legacy numeric ids are stored as 'c<n>'."""
    customer_id = str(customer_id)
    if customer_id.isdigit():
        return f"c{customer_id}"
    return customer_id


def _money(value):
    return float(value or 0)


class CustomerService:
    @staticmethod
    def get_all():
        try:
            return db_retry(lambda: Customer.query.order_by(Customer.company_name).all())
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching customers: {e}", exc_info=True)
            raise ServiceError("Error fetching customers")

    @staticmethod
    def get_by_id(customer_id):
        """Customer model, a demo payload dict, or None."""
        fixture = get_fixture('customer', customer_id)
        if fixture is not None:
            return fixture
        try:
            customer = db_retry(lambda: db.session.get(Customer, customer_id))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching customer: {e}", exc_info=True)
            customer = None
            if fallback_customer(customer_id) is None:
                raise ServiceError("Error fetching customer")
        if customer is None:
            fallback = fallback_customer(customer_id)
            if fallback is not None:
                logging.warning(f"Using fallback data for customer {customer_id}")
                return fallback
        return customer

    @staticmethod
    def require(customer_id):
        customer = CustomerService.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    @staticmethod
    def create(data):
        def unit():
            customer = Customer(**data)
            db.session.add(customer)
            db.session.commit()
            return customer

        try:
            return db_retry(unit)
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating customer: {e}", exc_info=True)
            raise ServiceError("Error creating customer")

    @staticmethod
    def update(customer_id, data):
        customer_id = normalize_customer_id(customer_id)
        fixture = get_fixture('customer', customer_id)
        if fixture is not None:
            fixture.update({k: v for k, v in data.items() if v is not None})
            return fixture

        def unit():
            customer = db.session.get(Customer, customer_id)
            if not customer:
                return None
            for key, value in data.items():
                setattr(customer, key, value)
            db.session.commit()
            return customer

        try:
            customer = db_retry(unit)
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error updating customer: {e}", exc_info=True)
            raise ServiceError("Error updating customer")
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    @staticmethod
    def delete(customer_id, test_case=None):
        """
        Hard-delete a customer that no booking or invoice refers to.

        The row is locked for the duration of the check so a booking or
        invoice cannot be attached between the counts and the DELETE.
        """
        if get_fixture('customer', customer_id) is not None:
            if fixture_conflict('customer', test_case):
                raise ForeignKeyConstraintError(
                    "Cannot delete customer with existing bookings. Please delete related bookings first.")
            return True

        def unit():
            with transaction('customer delete') as session:
                customer = session.execute(
                    select(Customer).where(Customer.id == customer_id).with_for_update()
                ).scalar_one_or_none()
                if customer is None:
                    raise NotFoundError("Customer not found")

                bookings = session.scalar(
                    select(func.count()).select_from(Booking).where(Booking.customer_id == customer_id))
                if bookings:
                    raise ForeignKeyConstraintError(
                        "Cannot delete customer with existing bookings. Please delete related bookings first.")

                invoices = session.scalar(
                    select(func.count()).select_from(Invoice).where(Invoice.customer_id == customer_id))
                if invoices:
                    raise ForeignKeyConstraintError(
                        "Cannot delete customer with existing invoices. Please delete related invoices first.")

                session.delete(customer)
                session.flush()
            return True

        try:
            return db_retry(unit)
        except ServiceError:
            raise
        except IntegrityError as e:
            if is_foreign_key_violation(e):
                raise ForeignKeyConstraintError("Cannot delete customer as it is referenced by other records.")
            logging.error(f"Error deleting customer: {e}", exc_info=True)
            raise ServiceError("Error deleting customer")
        except SQLAlchemyError as e:
            logging.error(f"Error deleting customer: {e}", exc_info=True)
            raise ServiceError("Error deleting customer")

    @staticmethod
    def get_contacts(customer_id):
        return CustomerService._read(
            lambda: Contact.query.filter_by(customer_id=customer_id).all(), "contacts")

    @staticmethod
    def get_orders(customer_id):
        return CustomerService._read(
            lambda: Order.query.filter_by(customer_id=customer_id).order_by(Order.created_at.desc()).all(),
            "orders")

    @staticmethod
    def get_booking_enquiries(customer_id):
        return CustomerService._read(
            lambda: Booking.query.filter_by(customer_id=customer_id).order_by(Booking.created_at.desc()).all(),
            "bookings")

    @staticmethod
    def get_activities(customer_id):
        return CustomerService._read(
            lambda: Activity.query.filter_by(customer_id=customer_id).order_by(Activity.date.desc()).all(),
            "activities")

    @staticmethod
    def get_invoices(customer_id):
        return CustomerService._read(
            lambda: Invoice.query.filter_by(customer_id=customer_id).order_by(Invoice.created_at.desc()).all(),
            "invoices")

    @staticmethod
    def get_communications(customer_id, limit=100):
        return CommunicationService.get_by_customer(customer_id, limit=limit)

    @staticmethod
    def get_financial_summary(customer_id):
        customer = CustomerService.require(customer_id)
        if isinstance(customer, dict):
            total_spent = _money(customer.get('total_spent'))
            total_orders = customer.get('total_orders') or 0
            invoices = []
        else:
            total_spent = _money(customer.total_spent)
            total_orders = customer.total_orders or 0
            invoices = CustomerService.get_invoices(customer_id)

        receivable = sum(_money(inv.total_amount) for inv in invoices if inv.status in RECEIVABLE_STATUSES)
        return {
            'total_revenue': sum(_money(inv.total_amount) for inv in invoices),
            'total_orders': total_orders,
            'total_orders_change': 0,
            'accounts_receivable': receivable,
            'accounts_receivable_change': 0,
            'average_days_to_pay': 0,
            'average_days_to_pay_change': 0,
            'average_order_value': total_spent / total_orders if total_orders else 0,
            'average_order_value_change': 0,
            'total_lifetime_value': total_spent,
            'total_lifetime_value_change': 0,
        }

    @staticmethod
    def get_details(customer_id):
        """Everything the customer detail page shows, in one payload."""
        customer_id = normalize_customer_id(customer_id)
        try:
            customer = db_retry(lambda: db.session.get(Customer, customer_id))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching customer details: {e}", exc_info=True)
            raise ServiceError("Error fetching customer details")
        if customer is None:
            raise NotFoundError("Customer not found")

        contacts = CustomerService.get_contacts(customer_id)
        orders = CustomerService.get_orders(customer_id)
        bookings = CustomerService.get_booking_enquiries(customer_id)
        invoices = CustomerService.get_invoices(customer_id)
        activities = CustomerService.get_activities(customer_id)
        communications = CommunicationService.get_by_customer(customer_id)

        total_revenue = sum((Decimal(str(inv.total_amount or 0)) for inv in invoices), Decimal('0'))
        by_status = {}
        for inv in invoices:
            by_status[inv.status] = by_status.get(inv.status, Decimal('0')) + Decimal(str(inv.total_amount or 0))

        financial_summary = {
            'total_revenue': float(total_revenue),
            'total_orders_change': 0,
            'accounts_receivable': {
                'pending': float(by_status.get(InvoiceStatus.PENDING.value, 0)),
                'due_soon': float(by_status.get(InvoiceStatus.DUE_SOON.value, 0)),
                'overdue': float(by_status.get(InvoiceStatus.OVERDUE.value, 0)),
            },
            'accounts_receivable_change': 0,
            'average_days_to_pay': 0,
            'average_days_to_pay_change': 0,
            'average_order_value': float(total_revenue) / len(orders) if orders else 0,
            'average_order_value_change': 0,
            'total_lifetime_value': float(total_revenue),
            'total_lifetime_value_change': 0,
            'paidInvoices': sum(1 for inv in invoices if inv.status == InvoiceStatus.PAID.value),
            'unpaidInvoices': sum(1 for inv in invoices if inv.status == InvoiceStatus.PENDING.value),
            'overdueInvoices': sum(1 for inv in invoices if inv.status == InvoiceStatus.OVERDUE.value),
        }

        return {
            'customer': customer,
            'contacts': contacts,
            'recentOrders': orders[:5],
            'orderHistory': orders,
            'allBookingEnquiries': bookings,
            'currentBookingEnquiries': [b for b in bookings if b.status in OPEN_BOOKING_STATUSES],
            'allCommunications': communications,
            'recentCommunications': communications[:5],
            'allContacts': contacts,
            'keyContacts': sorted(contacts, key=lambda c: not c.is_primary),
            'financialSummary': financial_summary,
            'invoices': invoices,
            'recentActivities': activities[:10],
        }

    @staticmethod
    def _read(query_fn, what):
        try:
            return db_retry(query_fn)
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching {what}: {e}", exc_info=True)
            raise ServiceError(f"Error fetching {what}")
