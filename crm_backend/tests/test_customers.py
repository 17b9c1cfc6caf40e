"""
Tests for customer routes, the guarded delete and the detail aggregate
"""
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crm_backend.models.customer import Customer, Contact, Activity
from crm_backend.models.order import Order
from crm_backend.services.customer_service import CustomerService, normalize_customer_id
from crm_backend.services.errors import ForeignKeyConstraintError, NotFoundError
from crm_backend.utils.timezone_utils import naive_utc_now


def customer_exists(db, customer_id):
    return db.session.scalar(select(func.count()).select_from(Customer).where(Customer.id == customer_id)) == 1


def test_normalize_customer_id():
    assert normalize_customer_id(7) == 'c7'
    assert normalize_customer_id('12') == 'c12'
    assert normalize_customer_id('c3') == 'c3'
    assert normalize_customer_id('550e8400-e29b-41d4-a716-446655440000') == '550e8400-e29b-41d4-a716-446655440000'


class TestCustomerRoutes:

    def test_create_and_fetch(self, client):
        response = client.post('/api/customers', json={
            'company_name': 'Blue Anchor Shipping',
            'email': 'ops@blueanchor.example',
            'country': 'Norway',
        })
        assert response.status_code == 201
        created = response.get_json()
        assert created['status'] == 'active'

        fetched = client.get(f"/api/customers/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.get_json()['company_name'] == 'Blue Anchor Shipping'

    def test_create_requires_company_name(self, client):
        response = client.post('/api/customers', json={'email': 'x@example.com'})
        assert response.status_code == 400
        assert 'company_name' in response.get_json()['errors']

    def test_unknown_customer_is_404(self, client):
        response = client.get('/api/customers/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['message'] == 'Customer not found'

    def test_update_normalises_numeric_id(self, client, make_customer):
        make_customer(id='c5')
        response = client.put('/api/customers/5', json={'city': 'Hamburg'})
        assert response.status_code == 200
        assert response.get_json()['city'] == 'Hamburg'

    def test_update_leaves_unsent_fields_alone(self, client, make_customer):
        customer = make_customer(email='ops@harbour.example', country='Netherlands')
        response = client.put(f'/api/customers/{customer.id}', json={'city': 'Rotterdam'})
        assert response.status_code == 200
        body = response.get_json()
        assert body['city'] == 'Rotterdam'
        assert body['company_name'] == 'Harbour Freight Ltd'
        assert body['email'] == 'ops@harbour.example'
        assert body['country'] == 'Netherlands'

    def test_update_missing_customer_is_404(self, client):
        response = client.put('/api/customers/nobody', json={'city': 'Hamburg'})
        assert response.status_code == 404

    def test_list_is_sorted_by_company_name(self, client, make_customer):
        make_customer(company_name='Zephyr Lines')
        make_customer(company_name='Atlas Cargo')
        names = [c['company_name'] for c in client.get('/api/customers').get_json()]
        assert names == ['Atlas Cargo', 'Zephyr Lines']


class TestCustomerDelete:

    def test_delete_unreferenced_customer(self, client, db, make_customer):
        customer = make_customer()
        customer_id = customer.id
        response = client.delete(f'/api/customers/{customer_id}')
        assert response.status_code == 200
        assert not customer_exists(db, customer_id)

    def test_delete_with_bookings_is_409_and_keeps_row(self, client, db, make_customer, make_booking):
        customer = make_customer()
        make_booking(customer)
        response = client.delete(f'/api/customers/{customer.id}')
        assert response.status_code == 409
        body = response.get_json()
        assert body['error'] == 'FOREIGN_KEY_CONSTRAINT'
        assert 'bookings' in body['message']
        assert customer_exists(db, customer.id)

    def test_delete_with_invoices_is_409(self, client, db, make_customer, make_invoice):
        customer = make_customer()
        make_invoice(customer, 'INV-0001')
        response = client.delete(f'/api/customers/{customer.id}')
        assert response.status_code == 409
        assert 'invoices' in response.get_json()['message']
        assert customer_exists(db, customer.id)

    def test_delete_missing_customer_is_404(self, client):
        assert client.delete('/api/customers/ghost').status_code == 404

    def test_integrity_error_from_delete_maps_to_conflict(self, app, db, make_customer, make_booking, monkeypatch):
        customer = make_customer()
        make_booking(customer)
        customer_id = customer.id

        # Make the pre-delete counts miss the booking so the DELETE itself trips the foreign key
        monkeypatch.setattr(Session, 'scalar', lambda self, *args, **kwargs: 0)
        with pytest.raises(ForeignKeyConstraintError):
            CustomerService.delete(customer_id)
        monkeypatch.undo()
        assert customer_exists(db, customer_id)

    def test_delete_removes_contacts(self, db, make_customer):
        customer = make_customer()
        db.session.add(Contact(customer_id=customer.id, name='Ana Ruiz'))
        db.session.commit()
        customer_id = customer.id
        assert CustomerService.delete(customer_id) is True
        assert db.session.scalar(select(func.count()).select_from(Contact)) == 0


class TestCustomerAggregates:

    def test_financial_summary(self, client, make_customer, make_invoice):
        customer = make_customer(total_spent=1000, total_orders=4)
        make_invoice(customer, 'INV-0001', total_amount=200, status='due')
        make_invoice(customer, 'INV-0002', total_amount=300, status='overdue')
        make_invoice(customer, 'INV-0003', total_amount=500, status='paid')

        summary = client.get(f'/api/customers/{customer.id}/financial-summary').get_json()
        assert summary['total_revenue'] == 1000
        assert summary['accounts_receivable'] == 500
        assert summary['average_order_value'] == 250
        assert summary['total_lifetime_value'] == 1000

    def test_financial_summary_without_orders(self, client, make_customer):
        customer = make_customer()
        summary = client.get(f'/api/customers/{customer.id}/financial-summary').get_json()
        assert summary['average_order_value'] == 0

    def test_financial_summary_unknown_customer(self, client):
        assert client.get('/api/customers/ghost/financial-summary').status_code == 404

    def test_details_payload(self, client, db, make_customer, make_booking, make_invoice):
        customer = make_customer(id='c9')
        db.session.add_all([
            Contact(customer_id='c9', name='Secondary', is_primary=False),
            Contact(customer_id='c9', name='Primary', is_primary=True),
            Order(customer_id='c9', order_number='ORD-1', total_amount=100),
            Order(customer_id='c9', order_number='ORD-2', total_amount=300),
        ])
        now = naive_utc_now()
        for day in range(12):
            db.session.add(Activity(customer_id='c9', type='note', description=f'day {day}',
                                    date=now - timedelta(days=day)))
        db.session.commit()
        make_booking(customer, status='pending')
        make_booking(customer, status='completed')
        make_invoice(customer, 'INV-0001', total_amount=150, status='overdue')
        make_invoice(customer, 'INV-0002', total_amount=250, status='paid')

        response = client.get('/api/customers/9/details')
        assert response.status_code == 200
        details = response.get_json()

        assert details['customer']['id'] == 'c9'
        assert details['keyContacts'][0]['name'] == 'Primary'
        assert len(details['orderHistory']) == 2
        assert len(details['allBookingEnquiries']) == 2
        assert [b['status'] for b in details['currentBookingEnquiries']] == ['pending']
        assert len(details['recentActivities']) == 10
        assert details['recentActivities'][0]['description'] == 'day 0'

        summary = details['financialSummary']
        assert summary['total_revenue'] == 400
        assert summary['accounts_receivable']['overdue'] == 150
        assert summary['paidInvoices'] == 1
        assert summary['overdueInvoices'] == 1
        assert summary['average_order_value'] == 200

    def test_details_unknown_customer(self, client):
        assert client.get('/api/customers/404/details').status_code == 404
