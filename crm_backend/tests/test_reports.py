from datetime import timedelta

import pytest

from crm_backend.services.errors import ValidationError
from crm_backend.services.report_service import period_days
from crm_backend.utils.timezone_utils import naive_utc_now


@pytest.mark.parametrize('period, days', [('week', 7), ('month', 30), ('quarter', 90), ('year', 365)])
def test_period_windows(period, days):
    assert period_days(period) == days


def test_invalid_period_is_rejected():
    with pytest.raises(ValidationError):
        period_days('decade')


def test_invalid_period_route(client):
    for path in ('/api/reports/financial', '/api/reports/shipping'):
        response = client.get(f'{path}?period=fortnight')
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Invalid period parameter'


def test_financial_report(client, make_customer, make_invoice):
    customer = make_customer()
    today = naive_utc_now().date()
    make_invoice(customer, 'INV-0001', total_amount=100, status='paid', issue_date=today)
    make_invoice(customer, 'INV-0002', total_amount=40, status='due', issue_date=today)
    make_invoice(customer, 'INV-0003', total_amount=60, status='due_soon', issue_date=today - timedelta(days=2))
    make_invoice(customer, 'INV-0004', total_amount=10, status='overdue', issue_date=today - timedelta(days=200))

    body = client.get('/api/reports/financial?period=week').get_json()
    buckets = {entry['date']: entry for entry in body['data']}
    assert buckets[today.strftime('%Y-%m-%d')] == {'date': today.strftime('%Y-%m-%d'), 'total': 140.0, 'count': 2}
    assert len(body['data']) == 2
    assert body['summary'] == {
        'total_revenue': 210.0,
        'paid_invoices': 1,
        'pending_invoices': 2,
        'overdue_invoices': 1,
    }


def test_financial_report_monthly_buckets(client, make_customer, make_invoice):
    customer = make_customer()
    today = naive_utc_now().date()
    make_invoice(customer, 'INV-0001', total_amount=100, issue_date=today)
    body = client.get('/api/reports/financial?period=year').get_json()
    assert body['data'] == [{'date': today.strftime('%Y-%m'), 'total': 100.0, 'count': 1}]


def test_financial_report_empty(client):
    body = client.get('/api/reports/financial').get_json()
    assert body['data'] == []
    assert body['summary']['total_revenue'] == 0


def test_shipping_report(client, make_customer, make_booking):
    customer = make_customer()
    make_booking(customer, transport_mode='air', status='confirmed')
    make_booking(customer, transport_mode='sea')
    make_booking(customer, transport_mode='sea', origin='Busan', destination='Seattle')

    body = client.get('/api/reports/shipping').get_json()
    assert body['transport_mode'][0] == {'transport_mode': 'sea', 'count': 2}
    assert body['routes'][0] == {'origin': 'Rotterdam', 'destination': 'Singapore', 'count': 2}
    assert {'status': 'pending', 'count': 2} in body['status']


def test_customer_report(client, make_customer, make_invoice):
    big = make_customer(company_name='Big Spender')
    small = make_customer(company_name='Small Buyer', status='inactive')
    make_invoice(big, 'INV-0001', total_amount=900)
    make_invoice(big, 'INV-0002', total_amount=100)
    make_invoice(small, 'INV-0003', total_amount=50)
    make_customer(company_name='No Invoices')

    body = client.get('/api/reports/customers').get_json()
    top = body['topCustomers']
    assert top[0]['company_name'] == 'Big Spender'
    assert top[0]['total_revenue'] == 1000.0
    assert top[0]['invoice_count'] == 2
    assert top[-1]['invoice_count'] == 0
    assert sum(entry['count'] for entry in body['customerAcquisition']) == 3
    assert {'status': 'active', 'count': 2} in body['statusDistribution']


def test_customer_report_empty(client):
    assert client.get('/api/reports/customers').get_json() == {
        'topCustomers': [], 'customerAcquisition': [], 'statusDistribution': [],
    }
