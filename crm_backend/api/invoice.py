from flask import Blueprint, request, jsonify
from marshmallow import ValidationError as SchemaValidationError
from crm_backend.api.errors import (
    service_error_response, validation_error_response, unexpected_error_response, dump,
)
from crm_backend.schemas.invoice_schema import InvoiceSchema, InvoiceStatusSchema
from crm_backend.services.errors import ServiceError
from crm_backend.services.invoice_service import InvoiceService

invoice_bp = Blueprint('invoice', __name__)
schema = InvoiceSchema()
schema_many = InvoiceSchema(many=True, exclude=('items',))
status_schema = InvoiceStatusSchema()


@invoice_bp.route('/invoices', methods=['GET'])
def list_invoices():
    try:
        return jsonify(schema_many.dump(InvoiceService.get_all())), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching invoices', 'list_invoices')


@invoice_bp.route('/invoices/<invoice_id>', methods=['GET'])
def get_invoice(invoice_id):
    try:
        return jsonify(dump(schema, InvoiceService.get_by_id(invoice_id))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error fetching invoice', 'get_invoice')


@invoice_bp.route('/invoices', methods=['POST'])
def create_invoice():
    try:
        data = schema.load(request.get_json() or {})
        invoice = InvoiceService.create(data)
        return jsonify(schema.dump(invoice)), 201
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error creating invoice', 'create_invoice')


@invoice_bp.route('/invoices/<invoice_id>', methods=['PUT'])
def update_invoice(invoice_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        invoice = InvoiceService.update(invoice_id, data)
        return jsonify(dump(schema, invoice)), 200
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error updating invoice', 'update_invoice')


@invoice_bp.route('/invoices/<invoice_id>', methods=['PATCH'])
def update_invoice_status(invoice_id):
    try:
        data = status_schema.load(request.get_json() or {})
        invoice = InvoiceService.update_status(invoice_id, data['status'])
        return jsonify({'message': 'Invoice status updated successfully', 'invoice': invoice}), 200
    except SchemaValidationError as err:
        return validation_error_response(err)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error updating invoice status', 'update_invoice_status')


@invoice_bp.route('/invoices/<invoice_id>', methods=['DELETE'])
def delete_invoice(invoice_id):
    try:
        InvoiceService.delete(invoice_id)
        return jsonify({'message': 'Invoice deleted successfully'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error deleting invoice', 'delete_invoice')
