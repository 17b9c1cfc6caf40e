"""
Drives the typed client against the real Flask app through its test client.
"""
from urllib.parse import urlsplit

import pytest

from crm_backend.config import TestConfig
from crm_backend.extensions import db
from crm_backend.server import create_app
from crm_client.endpoints import CrmApi
from crm_client.http import ApiClient, ApiError
from fakes import FakeResponse


class FlaskSession:
    """requests.Session look-alike that answers from a Flask test client."""

    def __init__(self, flask_client):
        self.flask_client = flask_client

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        response = self.flask_client.open(
            urlsplit(url).path, method=method, query_string=params, json=json, headers=headers)
        return FakeResponse(response.status_code, response.get_json(silent=True), dict(response.headers))

    def close(self):
        pass


@pytest.fixture
def api():
    app = create_app(TestConfig)
    client = ApiClient('http://crm.test', session=FlaskSession(app.test_client()))
    yield CrmApi(client)
    client.close()
    with app.app_context():
        db.drop_all()


def test_customer_round_trip(api):
    created = api.create_customer({'company_name': 'Polar Freight', 'country': 'Iceland'})
    assert created['company_name'] == 'Polar Freight'
    assert [c['id'] for c in api.get_customers()] == [created['id']]
    assert api.get_customer_communications(created['id']) == []


def test_booking_and_invoice_flow(api):
    customer = api.create_customer({'company_name': 'Polar Freight'})
    booking = api.create_booking({
        'customer_id': customer['id'], 'origin': 'Reykjavik', 'destination': 'Halifax', 'cargo_type': 'Fish',
    })
    assert booking['booking_number'] == 'BK-0001'

    invoice = api.create_invoice({
        'customer_id': customer['id'],
        'booking_id': booking['id'],
        'items': [{'description': 'Reefer container', 'amount': 2400}],
    })
    assert invoice['total_amount'] == 2400.0

    with pytest.raises(ApiError) as exc_info:
        api.delete_booking(booking['id'])
    assert exc_info.value.status == 409
    assert exc_info.value.response.data['error'] == 'FOREIGN_KEY_CONSTRAINT'


def test_unknown_customer_raises(api):
    with pytest.raises(ApiError) as exc_info:
        api.get_customer('ghost')
    assert exc_info.value.status == 404


def test_settings_served_by_backend(api):
    assert api.get_user_settings()['company']['name'] == 'Acme Logistics'
