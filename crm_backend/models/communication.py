from crm_backend.extensions import db
from crm_backend.models.mixins import new_id, TimestampMixin

COMMUNICATION_TYPES = ('email', 'call', 'note')

# Columns every deployed schema has; the rest were added later
CORE_COMMUNICATION_COLUMNS = (
    'id', 'customer_id', 'type', 'subject', 'content', 'date', 'status',
    'sender_name', 'sender_email', 'recipient_name', 'recipient_email',
    'tags', 'created_at', 'updated_at',
)


class Communication(TimestampMixin, db.Model):
    __tablename__ = 'communications'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True, index=True)
    type = db.Column(db.String(16), nullable=True)
    subject = db.Column(db.String(255), nullable=True)
    content = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime, nullable=True, index=True)
    status = db.Column(db.String(32), nullable=True, default='internal')
    sender_name = db.Column(db.String(128), nullable=True)
    sender_email = db.Column(db.String(128), nullable=True)
    recipient_name = db.Column(db.String(128), nullable=True)
    recipient_email = db.Column(db.String(128), nullable=True)
    duration = db.Column(db.Float, nullable=True)
    duration_minutes = db.Column(db.Float, nullable=True)
    call_notes = db.Column(db.Text, nullable=True)
    summary = db.Column(db.Text, nullable=True)
    from_name = db.Column(db.String(128), nullable=True)
    from_title = db.Column(db.String(128), nullable=True)
    to_name = db.Column(db.String(128), nullable=True)
    to_title = db.Column(db.String(128), nullable=True)
    contact_id = db.Column(db.String(36), nullable=True)
    user_id = db.Column(db.String(36), nullable=True)
    # JSON-encoded list of strings
    tags = db.Column(db.Text, nullable=True)
