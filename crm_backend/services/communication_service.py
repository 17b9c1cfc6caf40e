"""
Communications are read and written through Core statements against the
live table so that deployments still on the older, narrower
``communications`` schema keep working.
"""
import json
import logging
import re
from sqlalchemy import delete, insert, text, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from crm_backend.extensions import db
from crm_backend.models.communication import Communication, COMMUNICATION_TYPES, CORE_COMMUNICATION_COLUMNS
from crm_backend.models.mixins import new_id
from crm_backend.services.errors import ServiceError, NotFoundError, ValidationError
from crm_backend.utils.timezone_utils import parse_datetime_string, to_naive_utc, utc_now, format_datetime_for_api
from crm_backend.utils.transaction import db_retry, is_unknown_column_error, is_foreign_key_violation

logger = logging.getLogger(__name__)

communications_table = Communication.__table__

RESPONSE_FIELDS = (
    'id', 'customer_id', 'type', 'subject', 'content', 'date', 'status',
    'sender_name', 'sender_email', 'recipient_name', 'recipient_email',
    'duration', 'duration_minutes', 'call_notes', 'summary',
    'from_name', 'from_title', 'to_name', 'to_title',
    'contact_id', 'user_id', 'tags', 'created_at', 'updated_at',
)
DATETIME_FIELDS = ('date', 'created_at', 'updated_at')
TEXT_FIELDS = (
    'customer_id', 'type', 'subject', 'content', 'status',
    'sender_name', 'sender_email', 'recipient_name', 'recipient_email',
    'call_notes', 'summary', 'from_name', 'from_title', 'to_name', 'to_title',
    'contact_id', 'user_id',
)

# "Unknown column 'x' in 'field list'" / "table t has no column named x"
_COLUMN_IN_ERROR = re.compile(r"(?:column '([^']+)'|column named (\w+)|no such column: (\w+))", re.IGNORECASE)


def clean_value(value):
    """The literal string "undefined" and empty strings mean no value."""
    if value == 'undefined' or value == '':
        return None
    return value


def clean_number(value):
    value = clean_value(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def encode_tags(tags):
    """Tags are stored as a JSON array string."""
    tags = clean_value(tags)
    if tags is None:
        return json.dumps([])
    if isinstance(tags, str):
        tags = [tag.strip() for tag in tags.split(',') if tag.strip()]
    if not isinstance(tags, (list, tuple)):
        return json.dumps([])
    return json.dumps([str(tag) for tag in tags])


def parse_tags(raw):
    """
    Decode stored tags. JSON arrays come back as lists; text that is not
    JSON is treated as a comma-separated list; any other JSON value is [].
    """
    if not raw:
        return []
    if isinstance(raw, list):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.debug(f"Tags are not JSON ({e}); splitting on commas")
        return [tag.strip() for tag in str(raw).split(',') if tag.strip()]
    if isinstance(parsed, list):
        return parsed
    return []


def format_communication(row):
    """Map a raw row (any schema version) to the API shape."""
    data = dict(row)
    formatted = {field: data.get(field) for field in RESPONSE_FIELDS}
    for field in DATETIME_FIELDS:
        formatted[field] = format_datetime_for_api(formatted[field])
    formatted['tags'] = parse_tags(data.get('tags'))
    return formatted


def _problem_column(error):
    match = _COLUMN_IN_ERROR.search(str(getattr(error, 'orig', error)))
    if not match:
        return 'unknown'
    return next(group for group in match.groups() if group)


def _parse_date(value):
    value = clean_value(value)
    if value is None:
        return None
    try:
        return to_naive_utc(parse_datetime_string(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def _payload(data, creating):
    payload = {field: clean_value(data.get(field)) for field in TEXT_FIELDS}
    payload['duration'] = clean_number(data.get('duration'))
    payload['duration_minutes'] = clean_number(data.get('duration_minutes'))
    payload['tags'] = encode_tags(data.get('tags'))
    payload['status'] = payload['status'] or 'internal'
    payload['date'] = _parse_date(data.get('date'))
    if creating:
        payload['sender_name'] = payload['sender_name'] or payload['from_name'] or 'System'
        payload['date'] = payload['date'] or to_naive_utc(utc_now())
    return payload


def _core_only(payload):
    return {key: value for key, value in payload.items() if key in CORE_COMMUNICATION_COLUMNS}


class CommunicationService:
    @staticmethod
    def get_all():
        return CommunicationService._select(
            "SELECT * FROM communications ORDER BY date DESC", {}, "communications")

    @staticmethod
    def get_by_customer(customer_id, limit=100):
        return CommunicationService._select(
            "SELECT * FROM communications WHERE customer_id = :customer_id "
            "ORDER BY created_at DESC LIMIT :limit",
            {'customer_id': customer_id, 'limit': int(limit)},
            "communications")

    @staticmethod
    def get_by_id(communication_id):
        rows = CommunicationService._select(
            "SELECT * FROM communications WHERE id = :id", {'id': communication_id}, "communication")
        if not rows:
            raise NotFoundError("Communication not found")
        return rows[0]

    @staticmethod
    def create(data):
        """
        Insert a communication. Returns ``(communication, degraded)``;
        ``degraded`` is True when the table lacked optional columns and only
        the core fields were stored.
        """
        missing = [field for field in ('customer_id', 'type') if not clean_value(data.get(field))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)} are required")
        if data['type'] not in COMMUNICATION_TYPES:
            raise ValidationError(f"Invalid communication type: {data['type']}")

        payload = _payload(data, creating=True)
        payload['id'] = new_id()

        def unit():
            return CommunicationService._write(
                lambda values: insert(communications_table).values(values), payload, 'insert')

        degraded = CommunicationService._run_write(unit, "create")
        return CommunicationService.get_by_id(payload['id']), degraded

    @staticmethod
    def update(communication_id, data):
        """Full-row update; returns ``(communication, degraded)``."""
        if 'type' in data and clean_value(data['type']) is not None and data['type'] not in COMMUNICATION_TYPES:
            raise ValidationError(f"Invalid communication type: {data['type']}")
        payload = _payload(data, creating=False)

        def unit():
            result = {}

            def statement(values):
                return update(communications_table).where(communications_table.c.id == communication_id).values(values)

            result['degraded'] = CommunicationService._write(statement, payload, 'update', result)
            return result

        result = CommunicationService._run_write(unit, "update")
        if not result.get('rowcount'):
            raise NotFoundError("Communication not found")
        return CommunicationService.get_by_id(communication_id), result['degraded']

    @staticmethod
    def delete(communication_id):
        def unit():
            outcome = db.session.execute(
                delete(communications_table).where(communications_table.c.id == communication_id))
            db.session.commit()
            return outcome.rowcount

        deleted = CommunicationService._run_write(unit, "delete")
        if not deleted:
            raise NotFoundError("Communication not found")
        return True

    @staticmethod
    def _write(build_statement, payload, verb, result=None):
        """Run the statement with every column, then with the core ones if the table is older."""
        degraded = False
        try:
            outcome = db.session.execute(build_statement(payload))
        except DBAPIError as e:
            if not is_unknown_column_error(e):
                raise
            db.session.rollback()
            logger.warning(
                f"Communication {verb} hit an older table schema (problematic field: {_problem_column(e)}); "
                f"retrying with core columns only")
            outcome = db.session.execute(build_statement(_core_only(payload)))
            degraded = True
        if result is not None:
            result['rowcount'] = outcome.rowcount
        db.session.commit()
        return degraded

    @staticmethod
    def _run_write(unit, action):
        try:
            return db_retry(unit)
        except ServiceError:
            raise
        except IntegrityError as e:
            db.session.rollback()
            if is_foreign_key_violation(e):
                raise NotFoundError("Customer not found")
            logger.error(f"Error in {action} communication: {e}", exc_info=True)
            raise ServiceError(f"Failed to {action} communication")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error in {action} communication: {e}", exc_info=True)
            raise ServiceError(f"Failed to {action} communication")

    @staticmethod
    def _select(sql, params, what):
        def unit():
            rows = db.session.execute(text(sql), params).mappings().all()
            return [format_communication(row) for row in rows]

        try:
            return db_retry(unit)
        except ServiceError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {what}: {e}", exc_info=True)
            raise ServiceError(f"Failed to retrieve {what}")
