import logging
from decimal import Decimal
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from crm_backend.extensions import db
from crm_backend.models.booking import Booking
from crm_backend.models.customer import Customer
from crm_backend.models.invoice import Invoice, InvoiceItem, InvoiceStatus, INVOICE_NUMBER_PREFIX
from crm_backend.services.demo_fixtures import get_fixture
from crm_backend.services.errors import ServiceError, NotFoundError, ValidationError
from crm_backend.utils.numbering import next_number
from crm_backend.utils.transaction import db_retry, transaction, is_foreign_key_violation


def next_invoice_number(session):
    return next_number(session, Invoice.invoice_number, INVOICE_NUMBER_PREFIX)


def _decimal(value):
    return Decimal(str(value if value is not None else 0))


def item_amount(item):
    """Line amount as supplied, else quantity * unit_price."""
    if item.get('amount') is not None:
        return _decimal(item['amount'])
    return _decimal(item.get('quantity', 1)) * _decimal(item.get('unit_price', 0))


def resolve_total(total_amount, items):
    """
    The supplied total wins (it may include tax or discounts); without one
    the total is the sum of the line amounts.
    """
    items_total = sum((item_amount(item) for item in items), Decimal('0'))
    if total_amount is None:
        return items_total
    total = _decimal(total_amount)
    if items and total != items_total:
        logging.info(f"Invoice total {total} differs from line item sum {items_total}")
    return total


def _add_items(session, invoice_id, items):
    for position, item in enumerate(items):
        session.add(InvoiceItem(
            invoice_id=invoice_id,
            position=position,
            description=item.get('description'),
            quantity=item.get('quantity', 1),
            unit_price=_decimal(item.get('unit_price', 0)),
            amount=item_amount(item),
        ))
        # One statement per line so a bad line fails where it is
        session.flush()


def _check_references(session, customer_id, booking_id):
    if session.get(Customer, customer_id) is None:
        raise NotFoundError("Customer not found")
    if booking_id and session.get(Booking, booking_id) is None:
        raise NotFoundError("Booking not found")


class InvoiceService:
    @staticmethod
    def get_all():
        try:
            return db_retry(lambda: Invoice.query.order_by(Invoice.created_at.desc()).all())
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching invoices: {e}", exc_info=True)
            raise ServiceError("Error fetching invoices")

    @staticmethod
    def get_by_id(invoice_id):
        fixture = get_fixture('invoice', invoice_id)
        if fixture is not None:
            return fixture
        try:
            invoice = db_retry(lambda: db.session.get(Invoice, invoice_id))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error fetching invoice: {e}", exc_info=True)
            raise ServiceError("Error fetching invoice")
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    @staticmethod
    def create(data):
        """
        Create an invoice and its line items atomically.

        The number, the invoice row and every item are written in one
        transaction; a failure on any item leaves nothing behind.
        """
        customer_id = data.get('customer_id')
        if not customer_id:
            raise ValidationError("Missing required fields", {'required': ['customer_id']})
        items = data.get('items') or []

        def unit():
            with transaction('invoice create') as session:
                _check_references(session, customer_id, data.get('booking_id'))
                invoice = Invoice(
                    invoice_number=next_invoice_number(session),
                    customer_id=customer_id,
                    booking_id=data.get('booking_id'),
                    total_amount=resolve_total(data.get('total_amount'), items),
                    status=data.get('status') or InvoiceStatus.PENDING.value,
                    issue_date=data.get('issue_date'),
                    due_date=data.get('due_date'),
                )
                session.add(invoice)
                session.flush()
                _add_items(session, invoice.id, items)
                invoice_id = invoice.id
            logging.info(f"Created invoice {invoice.invoice_number} with {len(items)} item(s)")
            return invoice_id

        invoice_id = InvoiceService._run(unit, "creating")
        return InvoiceService.get_by_id(invoice_id)

    @staticmethod
    def update(invoice_id, data):
        """Update the supplied invoice fields; items are replaced only when given."""
        fixture = get_fixture('invoice', invoice_id)
        if fixture is not None:
            fixture.update(data)
            fixture['id'] = invoice_id
            return fixture
        items = data.get('items') or []

        def unit():
            with transaction('invoice update') as session:
                invoice = session.get(Invoice, invoice_id)
                if invoice is None:
                    raise NotFoundError("Invoice not found")
                if 'booking_id' in data:
                    _check_references(session, invoice.customer_id, data['booking_id'])
                for key in ('booking_id', 'status', 'issue_date', 'due_date'):
                    if key in data:
                        setattr(invoice, key, data[key])
                if 'total_amount' in data or 'items' in data:
                    invoice.total_amount = resolve_total(data.get('total_amount'), items)
                if 'items' in data:
                    session.execute(delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id))
                    _add_items(session, invoice_id, items)

        InvoiceService._run(unit, "updating")
        db.session.expire_all()
        return InvoiceService.get_by_id(invoice_id)

    @staticmethod
    def update_status(invoice_id, status):
        if get_fixture('invoice', invoice_id) is not None:
            return {'id': invoice_id, 'status': status or InvoiceStatus.PAID.value}

        def unit():
            invoice = db.session.get(Invoice, invoice_id)
            if invoice is None:
                return None
            invoice.status = status
            db.session.commit()
            return invoice

        invoice = InvoiceService._run(unit, "updating status of")
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return {'id': invoice.id, 'status': invoice.status}

    @staticmethod
    def delete(invoice_id):
        """Delete an invoice together with its items."""
        if get_fixture('invoice', invoice_id) is not None:
            return True

        def unit():
            with transaction('invoice delete') as session:
                session.execute(delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id))
                result = session.execute(delete(Invoice).where(Invoice.id == invoice_id))
                if result.rowcount == 0:
                    raise NotFoundError("Invoice not found")
            return True

        return InvoiceService._run(unit, "deleting")

    @staticmethod
    def _run(unit, action):
        try:
            return db_retry(unit)
        except ServiceError:
            raise
        except IntegrityError as e:
            db.session.rollback()
            logging.error(f"Error {action} invoice: {e}", exc_info=True)
            if is_foreign_key_violation(e):
                raise NotFoundError("Referenced customer or booking not found")
            raise ServiceError(f"Error {action} invoice")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error {action} invoice: {e}", exc_info=True)
            raise ServiceError(f"Error {action} invoice")
