"""
Typed endpoints of the CRM REST API.

Every method returns the decoded response body (see ``with_error_handling``).
"""

import logging
import time
from datetime import datetime, timezone

from crm_client.errors import with_error_handling
from crm_client.http import ApiClient

logger = logging.getLogger(__name__)

COMMUNICATION_REQUIRED_FIELDS = ('customer_id', 'type', 'subject', 'content')
COMMUNICATION_OPTIONAL_FIELDS = ('summary', 'to_name', 'to_title', 'duration_minutes', 'sender_name', 'sender_email')


def _now_iso():
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _trace_id(prefix):
    return f"{prefix}-{int(time.time() * 1000)}"


def clean_communication(data):
    """Fill defaults for a new communication and drop empty optional fields."""
    customer_id = data.get('customer_id')
    cleaned = {
        'customer_id': str(customer_id) if customer_id is not None else None,
        'type': data.get('type'),
        'subject': data.get('subject') or 'No Subject',
        'content': data.get('content') or '',
        'date': data.get('date') or _now_iso(),
        'status': data.get('status') or 'internal',
        'tags': data['tags'] if isinstance(data.get('tags'), list) else [],
        'from_name': data.get('from_name') or 'System User',
    }
    for field in COMMUNICATION_OPTIONAL_FIELDS:
        if data.get(field):
            cleaned[field] = data[field]
    return cleaned


class CrmApi:
    def __init__(self, client=None):
        self.client = client or ApiClient()

    # Customers

    @with_error_handling
    def get_customers(self):
        return self.client.get('/customers', headers={'X-Request-ID': _trace_id('customers')})

    @with_error_handling
    def get_customer(self, customer_id):
        return self.client.get(f'/customers/{customer_id}')

    @with_error_handling
    def create_customer(self, data):
        return self.client.post('/customers', json=data)

    @with_error_handling
    def update_customer(self, customer_id, data):
        return self.client.put(f'/customers/{customer_id}', json=data)

    @with_error_handling
    def delete_customer(self, customer_id):
        return self.client.delete(f'/customers/{customer_id}')

    @with_error_handling
    def get_customer_details(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/details')

    @with_error_handling
    def get_customer_contacts(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/contacts')

    @with_error_handling
    def get_customer_orders(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/orders')

    @with_error_handling
    def get_customer_communications(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/communications')

    @with_error_handling
    def get_customer_booking_enquiries(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/booking-enquiries')

    @with_error_handling
    def get_customer_activities(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/activities')

    @with_error_handling
    def get_customer_financial_summary(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/financial-summary')

    @with_error_handling
    def get_customer_invoices(self, customer_id):
        return self.client.get(f'/customers/{customer_id}/invoices')

    # Bookings

    @with_error_handling
    def get_bookings(self):
        return self.client.get('/bookings')

    @with_error_handling
    def get_booking(self, booking_id):
        return self.client.get(f'/bookings/{booking_id}')

    @with_error_handling
    def create_booking(self, data):
        if not data.get('customer_id'):
            raise ValueError('Customer is required')
        if not data.get('origin') or not data.get('destination'):
            raise ValueError('Origin and destination are required')
        return self.client.post('/bookings', json=data)

    @with_error_handling
    def update_booking(self, booking_id, data):
        return self.client.put(f'/bookings/{booking_id}', json=data)

    @with_error_handling
    def update_booking_status(self, booking_id, status):
        return self.client.patch(f'/bookings/{booking_id}', json={'status': status})

    @with_error_handling
    def delete_booking(self, booking_id):
        return self.client.delete(f'/bookings/{booking_id}')

    # Invoices

    @with_error_handling
    def get_invoices(self):
        return self.client.get('/invoices')

    @with_error_handling
    def get_invoice(self, invoice_id):
        return self.client.get(f'/invoices/{invoice_id}')

    @with_error_handling
    def create_invoice(self, data):
        return self.client.post('/invoices', json=data)

    @with_error_handling
    def update_invoice(self, invoice_id, data):
        return self.client.put(f'/invoices/{invoice_id}', json=data)

    @with_error_handling
    def update_invoice_status(self, invoice_id, status):
        return self.client.patch(f'/invoices/{invoice_id}', json={'status': status})

    @with_error_handling
    def delete_invoice(self, invoice_id):
        return self.client.delete(f'/invoices/{invoice_id}')

    # Communications

    @with_error_handling
    def get_communications(self):
        return self.client.get('/communications', headers={'X-Request-ID': _trace_id('communications')})

    @with_error_handling
    def get_communication(self, communication_id):
        return self.client.get(f'/communications/{communication_id}')

    @with_error_handling
    def create_communication(self, data):
        request_id = _trace_id('comm-create')
        cleaned = clean_communication(data)

        missing = [field for field in COMMUNICATION_REQUIRED_FIELDS if not cleaned[field]]
        if missing:
            logger.error(f"[{request_id}] Missing required fields: {missing}")
            raise ValueError(f"Communication creation failed: Required fields missing: {', '.join(missing)}")

        logger.debug(f"[{request_id}] Creating communication with data: {cleaned}")
        return self.client.post('/communications', json=cleaned, headers={'X-Request-ID': request_id})

    @with_error_handling
    def update_communication(self, communication_id, data):
        return self.client.put(f'/communications/{communication_id}',
                               json=dict(data, tags=data.get('tags') or []))

    @with_error_handling
    def delete_communication(self, communication_id):
        self.client.delete(f'/communications/{communication_id}')
        return True

    # Dashboard

    @with_error_handling
    def get_dashboard_stats(self):
        return self.client.get('/dashboard/stats')

    @with_error_handling
    def get_dashboard_financial_summary(self):
        return self.client.get('/dashboard/financial-summary')

    @with_error_handling
    def get_recent_customers(self):
        return self.client.get('/dashboard/recent-customers')

    @with_error_handling
    def get_recent_bookings(self):
        return self.client.get('/dashboard/recent-bookings')

    @with_error_handling
    def get_user_profile(self):
        return self.client.get('/dashboard/user-profile')

    @with_error_handling
    def update_dashboard_stats(self, data):
        return self.client.post('/dashboard/stats', json=data)

    @with_error_handling
    def add_recent_activity(self, data):
        return self.client.post('/dashboard/activity', json=data)

    # Reports

    @with_error_handling
    def get_financial_report(self, period='month'):
        return self.client.get('/reports/financial', params={'period': period})

    @with_error_handling
    def get_shipping_report(self, period='month'):
        return self.client.get('/reports/shipping', params={'period': period})

    @with_error_handling
    def get_customer_report(self, period='month'):
        return self.client.get('/reports/customers', params={'period': period})

    # Settings

    @with_error_handling
    def get_user_settings(self):
        return self.client.get('/settings/user')
