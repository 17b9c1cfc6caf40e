from flask import Blueprint, request, jsonify
from marshmallow import ValidationError as SchemaValidationError
from crm_backend.api.errors import service_error_response, validation_error_response, unexpected_error_response
from crm_backend.schemas.booking_schema import BookingSchema
from crm_backend.schemas.customer_schema import CustomerSchema
from crm_backend.schemas.dashboard_schema import DashboardStatsSchema, UserProfileSchema
from crm_backend.services.dashboard_service import DashboardService
from crm_backend.services.errors import ServiceError

dashboard_bp = Blueprint('dashboard', __name__)
stats_schema = DashboardStatsSchema()
customer_schema_many = CustomerSchema(many=True)
booking_schema_many = BookingSchema(many=True)
profile_schema = UserProfileSchema()


@dashboard_bp.route('/dashboard/stats', methods=['GET'])
def get_stats():
    try:
        return jsonify(DashboardService.get_stats()), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching dashboard stats', 'get_stats')


@dashboard_bp.route('/dashboard/financial-summary', methods=['GET'])
def get_financial_summary():
    try:
        return jsonify(DashboardService.get_financial_summary()), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching financial summary', 'get_financial_summary')


@dashboard_bp.route('/dashboard/recent-customers', methods=['GET'])
def get_recent_customers():
    try:
        return jsonify(customer_schema_many.dump(DashboardService.get_recent_customers())), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching recent customers', 'get_recent_customers')


@dashboard_bp.route('/dashboard/recent-bookings', methods=['GET'])
def get_recent_bookings():
    try:
        return jsonify(booking_schema_many.dump(DashboardService.get_recent_bookings())), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching recent bookings', 'get_recent_bookings')


@dashboard_bp.route('/dashboard/user-profile', methods=['GET'])
def get_user_profile():
    try:
        return jsonify(profile_schema.dump(DashboardService.get_user_profile())), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching user profile', 'get_user_profile')


@dashboard_bp.route('/dashboard/stats', methods=['POST'])
def update_stats():
    try:
        data = stats_schema.load(request.get_json() or {})
        DashboardService.update_stats(data)
        return jsonify({'message': 'Dashboard stats updated successfully'}), 200
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error updating dashboard stats', 'update_stats')


@dashboard_bp.route('/dashboard/activity', methods=['POST'])
def add_activity():
    try:
        DashboardService.add_activity(request.get_json() or {})
        return jsonify({'message': 'Activity added successfully'}), 201
    except ServiceError as se:
        if se.status_code == 400:
            return jsonify({'error': se.message}), 400
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Failed to add activity', 'add_activity')
