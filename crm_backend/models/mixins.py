import uuid
from crm_backend.utils.timezone_utils import naive_utc_now
from crm_backend.extensions import db


def new_id():
    return str(uuid.uuid4())


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=naive_utc_now, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=naive_utc_now, onupdate=naive_utc_now, nullable=False)
