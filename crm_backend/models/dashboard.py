from crm_backend.utils.timezone_utils import naive_utc_now
from crm_backend.extensions import db
from crm_backend.models.mixins import new_id


class DashboardStats(db.Model):
    __tablename__ = 'dashboard_stats'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    total_customers = db.Column(db.Integer, nullable=True)
    total_orders = db.Column(db.Integer, nullable=True)
    total_revenue = db.Column(db.Numeric(precision=14, scale=2), nullable=True)
    pending_bookings = db.Column(db.Integer, nullable=True)
    updated_at = db.Column(db.DateTime, default=naive_utc_now, onupdate=naive_utc_now, nullable=False)


class RecentActivity(db.Model):
    __tablename__ = 'recent_activities'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    type = db.Column(db.String(32), nullable=False)
    action = db.Column(db.String(255), nullable=False)
    user = db.Column(db.String(128), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=naive_utc_now, index=True)
