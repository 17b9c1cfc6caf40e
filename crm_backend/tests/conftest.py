import pytest
from crm_backend.config import TestConfig
from crm_backend.extensions import db as _db
from crm_backend.server import create_app
from crm_backend.models.booking import Booking
from crm_backend.models.customer import Customer
from crm_backend.models.invoice import Invoice
from crm_backend.utils.timezone_utils import naive_utc_now


class DemoConfig(TestConfig):
    DEMO_FIXTURES_ENABLED = True


def _app_for(config):
    app = create_app(config)
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def app():
    yield from _app_for(TestConfig)


@pytest.fixture
def demo_app():
    yield from _app_for(DemoConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def demo_client(demo_app):
    return demo_app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_customer(app):
    def factory(**fields):
        fields.setdefault('company_name', 'Harbour Freight Ltd')
        customer = Customer(**fields)
        _db.session.add(customer)
        _db.session.commit()
        return customer
    return factory


@pytest.fixture
def make_booking(app):
    def factory(customer, **fields):
        values = dict(origin='Rotterdam', destination='Singapore', cargo_type='Machinery')
        values.update(fields)
        booking = Booking(customer_id=customer.id, **values)
        _db.session.add(booking)
        _db.session.commit()
        return booking
    return factory


@pytest.fixture
def make_invoice(app):
    def factory(customer, invoice_number, **fields):
        fields.setdefault('issue_date', naive_utc_now().date())
        invoice = Invoice(customer_id=customer.id, invoice_number=invoice_number, **fields)
        _db.session.add(invoice)
        _db.session.commit()
        return invoice
    return factory
