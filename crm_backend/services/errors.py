"""
Exceptions raised by the service layer.

Every service failure is one of these; blueprints turn them into JSON
responses with ``status_code``.
"""

FOREIGN_KEY_CONSTRAINT = 'FOREIGN_KEY_CONSTRAINT'


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'message': self.message}


class NotFoundError(ServiceError):
    status_code = 404


class ValidationError(ServiceError):
    status_code = 400

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details

    def to_dict(self):
        payload = {'message': self.message}
        if self.details is not None:
            payload.update(self.details)
        return payload


class ForeignKeyConstraintError(ServiceError):
    """A delete would orphan dependent rows."""
    status_code = 409

    def to_dict(self):
        return {'message': self.message, 'error': FOREIGN_KEY_CONSTRAINT}


class TransientDatabaseError(ServiceError):
    """The database stayed unreachable for every retry attempt."""
    status_code = 503
