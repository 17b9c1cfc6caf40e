"""
Canned payloads served for well-known demo ids.

Only consulted when DEMO_FIXTURES_ENABLED is set; services go through
``get_fixture`` rather than comparing ids themselves.
"""
import copy
from flask import current_app

DEMO_ID = '550e8400-e29b-41d4-a716-446655440000'
FALLBACK_CUSTOMER_ID = 'c1'

# test_case values that make a fixture delete answer 409
CONFLICT_TEST_CASES = {
    'customer': 'has_bookings',
    'booking': 'has_invoices',
}

_FIXTURES = {
    'customer': {
        DEMO_ID: {
            'id': DEMO_ID,
            'company_name': 'Test Company',
            'contact_person': 'John Doe',
            'email': 'test@example.com',
            'phone': '+1234567890',
            'address': '123 Test St',
            'city': 'Test City',
            'country': 'Test Country',
            'status': 'Active',
            'created_at': '2023-01-01T00:00:00.000Z',
            'updated_at': '2023-01-01T00:00:00.000Z',
        },
    },
    'booking': {
        DEMO_ID: {
            'id': DEMO_ID,
            'booking_number': 'BK-0001',
            'customer_id': DEMO_ID,
            'origin': 'New York',
            'destination': 'Los Angeles',
            'cargo_type': 'Electronics',
            'transport_mode': 'road',
            'container_size': '20ft',
            'weight': 500,
            'status': 'pending',
            'pickup_date': '2023-06-15',
            'delivery_date': '2023-06-16',
            'created_by': DEMO_ID,
        },
    },
    'invoice': {
        DEMO_ID: {
            'id': DEMO_ID,
            'invoice_number': 'INV-0001',
            'customer_id': DEMO_ID,
            'booking_id': DEMO_ID,
            'total_amount': 1500.00,
            'status': 'pending',
            'issue_date': '2023-06-01',
            'due_date': '2023-06-15',
            'items': [
                {
                    'description': 'Shipping Service',
                    'quantity': 1,
                    'unit_price': 1500.00,
                    'amount': 1500.00,
                }
            ],
        },
    },
}

_FALLBACK_CUSTOMER = {
    'id': FALLBACK_CUSTOMER_ID,
    'company_name': 'Global Logistics Inc.',
    'contact_person': 'John Smith',
    'email': 'john.smith@globallogistics.com',
    'phone': '+1 (555) 123-4567',
    'address': '123 Shipping Lane',
    'city': 'New York',
    'country': 'USA',
    'status': 'active',
    'total_spent': 125000,
    'total_orders': 45,
    'created_at': '2024-01-01T00:00:00.000Z',
    'updated_at': '2024-03-15T00:00:00.000Z',
}


def fixtures_enabled() -> bool:
    return bool(current_app.config.get('DEMO_FIXTURES_ENABLED'))


def get_fixture(kind, entity_id):
    """Return a copy of the fixture for ``kind``/``entity_id``, or None."""
    if not fixtures_enabled():
        return None
    fixture = _FIXTURES.get(kind, {}).get(entity_id)
    return copy.deepcopy(fixture) if fixture is not None else None


def fixture_conflict(kind, test_case) -> bool:
    """True when ``test_case`` asks a fixture delete to fail with a conflict."""
    return test_case is not None and CONFLICT_TEST_CASES.get(kind) == test_case


def fallback_customer(customer_id):
    """The demo customer used when the ``c1`` lookup fails outside production."""
    if customer_id != FALLBACK_CUSTOMER_ID or not fixtures_enabled():
        return None
    if current_app.config.get('ENV_NAME') == 'production':
        return None
    return copy.deepcopy(_FALLBACK_CUSTOMER)
