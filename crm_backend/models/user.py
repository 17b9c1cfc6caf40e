from crm_backend.utils.timezone_utils import naive_utc_now
from crm_backend.extensions import db
from crm_backend.models.mixins import new_id

SYSTEM_USER_EMAIL = 'system@example.com'


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(128), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    first_name = db.Column(db.String(64), nullable=True)
    last_name = db.Column(db.String(64), nullable=True)
    role = db.Column(db.String(32), nullable=False, default='user')
    title = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    avatar = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=naive_utc_now, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)
