from flask import Blueprint, request, jsonify
from marshmallow import ValidationError as SchemaValidationError
from crm_backend.api.errors import (
    service_error_response, validation_error_response, unexpected_error_response, dump,
)
from crm_backend.schemas.booking_schema import BookingSchema, BookingStatusSchema
from crm_backend.services.booking_service import BookingService
from crm_backend.services.errors import ServiceError

booking_bp = Blueprint('booking', __name__)
schema = BookingSchema()
schema_many = BookingSchema(many=True)
status_schema = BookingStatusSchema()


@booking_bp.route('/bookings', methods=['GET'])
def list_bookings():
    try:
        return jsonify(schema_many.dump(BookingService.get_all())), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching bookings', 'list_bookings')


@booking_bp.route('/bookings/<booking_id>', methods=['GET'])
def get_booking(booking_id):
    try:
        return jsonify(dump(schema, BookingService.get_by_id(booking_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching booking', 'get_booking')


@booking_bp.route('/bookings', methods=['POST'])
def create_booking():
    try:
        raw = request.get_json() or {}
        BookingService.check_required(raw)
        data = schema.load(raw)
        booking = BookingService.create(data, requested_user_id=request.headers.get('X-User-Id'))
        return jsonify(dump(schema, booking)), 201
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error creating booking', 'create_booking')


@booking_bp.route('/bookings/<booking_id>', methods=['PUT'])
def update_booking(booking_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        booking = BookingService.update(booking_id, data)
        return jsonify(dump(schema, booking)), 200
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error updating booking', 'update_booking')


@booking_bp.route('/bookings/<booking_id>', methods=['PATCH'])
def update_booking_status(booking_id):
    try:
        data = status_schema.load(request.get_json() or {})
        booking = BookingService.update_status(booking_id, data['status'])
        return jsonify({'message': 'Booking status updated successfully', 'booking': booking}), 200
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error updating booking status', 'update_booking_status')


@booking_bp.route('/bookings/<booking_id>', methods=['DELETE'])
def delete_booking(booking_id):
    try:
        BookingService.delete(booking_id, test_case=request.args.get('test_case'))
        return jsonify({'message': 'Booking deleted successfully'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error deleting booking', 'delete_booking')
