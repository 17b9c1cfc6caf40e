from flask import Blueprint, request, jsonify
from marshmallow import ValidationError as SchemaValidationError
from crm_backend.api.errors import (
    service_error_response, validation_error_response, unexpected_error_response, dump,
)
from crm_backend.schemas.booking_schema import BookingSchema
from crm_backend.schemas.customer_schema import CustomerSchema, ContactSchema, ActivitySchema
from crm_backend.schemas.invoice_schema import InvoiceSchema
from crm_backend.schemas.order_schema import OrderSchema
from crm_backend.services.customer_service import CustomerService
from crm_backend.services.errors import ServiceError

customer_bp = Blueprint('customer', __name__)
schema = CustomerSchema()
schema_many = CustomerSchema(many=True)
contact_schema_many = ContactSchema(many=True)
activity_schema_many = ActivitySchema(many=True)
order_schema_many = OrderSchema(many=True)
booking_schema_many = BookingSchema(many=True)
invoice_schema_many = InvoiceSchema(many=True)


@customer_bp.route('/customers', methods=['GET'])
def list_customers():
    try:
        customers = CustomerService.get_all()
        return jsonify(schema_many.dump(customers)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching customers', 'list_customers')


@customer_bp.route('/customers/<customer_id>', methods=['GET'])
def get_customer(customer_id):
    try:
        customer = CustomerService.require(customer_id)
        return jsonify(dump(schema, customer)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching customer', 'get_customer')


@customer_bp.route('/customers', methods=['POST'])
def create_customer():
    try:
        data = schema.load(request.get_json() or {})
        customer = CustomerService.create(data)
        return jsonify(schema.dump(customer)), 201
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error creating customer', 'create_customer')


@customer_bp.route('/customers/<customer_id>', methods=['PUT'])
def update_customer(customer_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        customer = CustomerService.update(customer_id, data)
        return jsonify(dump(schema, customer)), 200
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error updating customer', 'update_customer')


@customer_bp.route('/customers/<customer_id>', methods=['DELETE'])
def delete_customer(customer_id):
    try:
        CustomerService.delete(customer_id, test_case=request.args.get('test_case'))
        return jsonify({'message': 'Customer deleted successfully'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error deleting customer', 'delete_customer')


@customer_bp.route('/customers/<customer_id>/contacts', methods=['GET'])
def get_customer_contacts(customer_id):
    try:
        return jsonify(contact_schema_many.dump(CustomerService.get_contacts(customer_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching contacts', 'get_customer_contacts')


@customer_bp.route('/customers/<customer_id>/orders', methods=['GET'])
def get_customer_orders(customer_id):
    try:
        return jsonify(order_schema_many.dump(CustomerService.get_orders(customer_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching orders', 'get_customer_orders')


@customer_bp.route('/customers/<customer_id>/communications', methods=['GET'])
def get_customer_communications(customer_id):
    try:
        return jsonify(CustomerService.get_communications(customer_id)), 200
    except ServiceError as se:
        return jsonify({'success': False, 'error': se.message}), se.status_code
    except Exception as e:
        return unexpected_error_response(e, 'Failed to retrieve communications', 'get_customer_communications')


@customer_bp.route('/customers/<customer_id>/booking-enquiries', methods=['GET'])
def get_customer_booking_enquiries(customer_id):
    try:
        return jsonify(booking_schema_many.dump(CustomerService.get_booking_enquiries(customer_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching bookings', 'get_customer_booking_enquiries')


@customer_bp.route('/customers/<customer_id>/activities', methods=['GET'])
def get_customer_activities(customer_id):
    try:
        return jsonify(activity_schema_many.dump(CustomerService.get_activities(customer_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching activities', 'get_customer_activities')


@customer_bp.route('/customers/<customer_id>/financial-summary', methods=['GET'])
def get_customer_financial_summary(customer_id):
    try:
        return jsonify(CustomerService.get_financial_summary(customer_id)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching financial summary', 'get_customer_financial_summary')


@customer_bp.route('/customers/<customer_id>/invoices', methods=['GET'])
def get_customer_invoices(customer_id):
    try:
        return jsonify(invoice_schema_many.dump(CustomerService.get_invoices(customer_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching invoices', 'get_customer_invoices')


@customer_bp.route('/customers/<customer_id>/details', methods=['GET'])
def get_customer_details(customer_id):
    try:
        details = CustomerService.get_details(customer_id)
        return jsonify({
            'customer': schema.dump(details['customer']),
            'contacts': contact_schema_many.dump(details['contacts']),
            'recentOrders': order_schema_many.dump(details['recentOrders']),
            'orderHistory': order_schema_many.dump(details['orderHistory']),
            'allBookingEnquiries': booking_schema_many.dump(details['allBookingEnquiries']),
            'currentBookingEnquiries': booking_schema_many.dump(details['currentBookingEnquiries']),
            'allCommunications': details['allCommunications'],
            'recentCommunications': details['recentCommunications'],
            'allContacts': contact_schema_many.dump(details['allContacts']),
            'keyContacts': contact_schema_many.dump(details['keyContacts']),
            'financialSummary': details['financialSummary'],
            'invoices': invoice_schema_many.dump(details['invoices']),
            'recentActivities': activity_schema_many.dump(details['recentActivities']),
        }), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching customer details', 'get_customer_details')
