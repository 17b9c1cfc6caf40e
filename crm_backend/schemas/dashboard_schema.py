from marshmallow import EXCLUDE, fields
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from crm_backend.models.dashboard import DashboardStats, RecentActivity
from crm_backend.models.user import User


class DashboardStatsSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = DashboardStats
        unknown = EXCLUDE
    id = auto_field(dump_only=True)
    total_revenue = fields.Float(allow_none=True)
    updated_at = auto_field(dump_only=True)


class RecentActivitySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = RecentActivity
        unknown = EXCLUDE
    id = auto_field(dump_only=True)
    timestamp = auto_field(required=False)


class UserProfileSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = User
        exclude = ('password_hash',)
