"""
Report aggregations.

Rows are fetched with plain ORM queries and aggregated with pandas so the
same code runs on MySQL and SQLite.
"""
import logging
from datetime import timedelta
import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from crm_backend.extensions import db
from crm_backend.models.booking import Booking
from crm_backend.models.customer import Customer
from crm_backend.models.invoice import Invoice, InvoiceStatus
from crm_backend.services.errors import ServiceError, ValidationError
from crm_backend.utils.timezone_utils import get_display_timezone, utc_now
from crm_backend.utils.transaction import db_retry

PERIOD_DAYS = {
    'week': 7,
    'month': 30,
    'quarter': 90,
    'year': 365,
}
# Daily buckets for short windows, monthly for long ones
DAILY_PERIODS = ('week', 'month')


def period_days(period):
    if period not in PERIOD_DAYS:
        raise ValidationError("Invalid period parameter")
    return PERIOD_DAYS[period]


def _fetch(statement):
    return db_retry(lambda: db.session.execute(statement).mappings().all())


def _frame(rows, columns):
    return pd.DataFrame([dict(row) for row in rows], columns=list(columns))


def _counts(df, column, limit=None):
    """[{column: value, 'count': n}] ordered by count, largest first."""
    if df.empty:
        return []
    counts = df.groupby(column, dropna=False).size().sort_values(ascending=False, kind='stable')
    if limit:
        counts = counts.head(limit)
    return [{column: key, 'count': int(value)} for key, value in counts.items()]


def _local_month(series):
    """YYYY-MM of naive UTC timestamps in the display timezone."""
    stamps = pd.to_datetime(series).dt.tz_localize('UTC').dt.tz_convert(get_display_timezone())
    return stamps.dt.strftime('%Y-%m')


class ReportService:
    @staticmethod
    def financial(period='month'):
        days = period_days(period)
        cutoff = utc_now().date() - timedelta(days=days)
        try:
            invoices = _frame(
                _fetch(select(Invoice.id, Invoice.total_amount, Invoice.status, Invoice.issue_date)),
                ('id', 'total_amount', 'status', 'issue_date'))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error generating financial reports: {e}", exc_info=True)
            raise ServiceError("Error generating financial reports")

        invoices['total_amount'] = pd.to_numeric(invoices['total_amount'], errors='coerce').fillna(0.0)

        data = []
        dated = invoices.dropna(subset=['issue_date'])
        dated = dated[pd.to_datetime(dated['issue_date']) >= pd.Timestamp(cutoff)]
        if not dated.empty:
            fmt = '%Y-%m-%d' if period in DAILY_PERIODS else '%Y-%m'
            dated = dated.assign(date=pd.to_datetime(dated['issue_date']).dt.strftime(fmt))
            buckets = dated.groupby('date').agg(total=('total_amount', 'sum'), count=('id', 'count'))
            data = [
                {'date': date, 'total': float(row['total']), 'count': int(row['count'])}
                for date, row in buckets.sort_index().iterrows()
            ]

        status = invoices['status']
        return {
            'data': data,
            'summary': {
                'total_revenue': float(invoices['total_amount'].sum()),
                'paid_invoices': int((status == InvoiceStatus.PAID.value).sum()),
                'pending_invoices': int(status.isin([InvoiceStatus.DUE.value, InvoiceStatus.DUE_SOON.value]).sum()),
                'overdue_invoices': int((status == InvoiceStatus.OVERDUE.value).sum()),
            },
        }

    @staticmethod
    def shipping(period='month'):
        days = period_days(period)
        cutoff = (utc_now() - timedelta(days=days)).replace(tzinfo=None)
        try:
            bookings = _frame(
                _fetch(select(Booking.transport_mode, Booking.origin, Booking.destination,
                              Booking.status, Booking.created_at)),
                ('transport_mode', 'origin', 'destination', 'status', 'created_at'))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error generating shipping reports: {e}", exc_info=True)
            raise ServiceError("Error generating shipping reports")

        recent = bookings[pd.to_datetime(bookings['created_at']) >= pd.Timestamp(cutoff)]

        routes = []
        located = bookings.dropna(subset=['origin', 'destination'])
        if not located.empty:
            pairs = (located.groupby(['origin', 'destination']).size()
                     .sort_values(ascending=False, kind='stable').head(10))
            routes = [
                {'origin': origin, 'destination': destination, 'count': int(count)}
                for (origin, destination), count in pairs.items()
            ]

        return {
            'transport_mode': _counts(recent, 'transport_mode'),
            'routes': routes,
            'status': _counts(bookings, 'status'),
        }

    @staticmethod
    def customers():
        try:
            customers = _frame(
                _fetch(select(Customer.id, Customer.company_name, Customer.contact_person,
                              Customer.status, Customer.created_at)),
                ('id', 'company_name', 'contact_person', 'status', 'created_at'))
            invoices = _frame(
                _fetch(select(Invoice.id.label('invoice_id'), Invoice.customer_id, Invoice.total_amount)),
                ('invoice_id', 'customer_id', 'total_amount'))
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logging.error(f"Error generating customer reports: {e}", exc_info=True)
            raise ServiceError("Error generating customer reports")

        if customers.empty:
            return {'topCustomers': [], 'customerAcquisition': [], 'statusDistribution': []}

        invoices['total_amount'] = pd.to_numeric(invoices['total_amount'], errors='coerce').fillna(0.0)
        revenue = invoices.groupby('customer_id').agg(
            total_revenue=('total_amount', 'sum'), invoice_count=('invoice_id', 'count'))
        top = customers.merge(revenue, how='left', left_on='id', right_index=True)
        top[['total_revenue', 'invoice_count']] = top[['total_revenue', 'invoice_count']].fillna(0)
        top = top.sort_values('total_revenue', ascending=False, kind='stable').head(10)
        top_customers = [
            {
                'id': row['id'],
                'company_name': row['company_name'],
                'contact_person': row['contact_person'],
                'total_revenue': float(row['total_revenue']),
                'invoice_count': int(row['invoice_count']),
            }
            for _, row in top.iterrows()
        ]

        acquisition = customers.assign(month=_local_month(customers['created_at'])).groupby('month').size()
        customer_acquisition = [
            {'month': month, 'count': int(count)} for month, count in acquisition.sort_index().items()
        ]

        return {
            'topCustomers': top_customers,
            'customerAcquisition': customer_acquisition,
            'statusDistribution': _counts(customers, 'status'),
        }
