import logging
from flask import current_app, jsonify


def service_error_response(se):
    return jsonify(se.to_dict()), se.status_code


def validation_error_response(err):
    return jsonify({'message': 'Validation failed', 'errors': err.messages}), 400


def unexpected_error_response(e, message, where):
    """Log an unhandled error and answer 500; the raw error text only leaves the server outside production."""
    logging.error(f"Unhandled error in {where}: {e}", exc_info=True)
    body = {'message': message}
    if current_app.config.get('EXPOSE_ERROR_DETAILS'):
        body['error'] = str(e)
    return jsonify(body), 500


def dump(schema, obj):
    """Dump a model; demo payloads are already plain dicts."""
    if isinstance(obj, dict):
        return obj
    return schema.dump(obj)
