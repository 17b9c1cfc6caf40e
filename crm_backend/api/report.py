from flask import Blueprint, request, jsonify
from crm_backend.api.errors import service_error_response, unexpected_error_response
from crm_backend.services.errors import ServiceError
from crm_backend.services.report_service import ReportService

report_bp = Blueprint('report', __name__)


@report_bp.route('/reports/financial', methods=['GET'])
def financial_report():
    try:
        return jsonify(ReportService.financial(request.args.get('period', 'month'))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error generating financial reports', 'financial_report')


@report_bp.route('/reports/shipping', methods=['GET'])
def shipping_report():
    try:
        return jsonify(ReportService.shipping(request.args.get('period', 'month'))), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error generating shipping reports', 'shipping_report')


@report_bp.route('/reports/customers', methods=['GET'])
def customer_report():
    try:
        return jsonify(ReportService.customers()), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response(e, 'Error generating customer reports', 'customer_report')
