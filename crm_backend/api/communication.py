import logging
from flask import Blueprint, current_app, request, jsonify
from crm_backend.services.communication_service import CommunicationService
from crm_backend.services.errors import ServiceError

communication_bp = Blueprint('communication', __name__)


def _error(message, status_code):
    return jsonify({'success': False, 'error': message}), status_code


def _unexpected(e, message, where):
    logging.error(f"Unhandled error in {where}: {e}", exc_info=True)
    if current_app.config.get('EXPOSE_ERROR_DETAILS'):
        message = f"{message}: {e}"
    return _error(message, 500)


def _with_degraded(communication, degraded):
    if degraded:
        return dict(communication, degraded=True)
    return communication


@communication_bp.route('/communications', methods=['GET'])
def list_communications():
    try:
        return jsonify(CommunicationService.get_all()), 200
    except ServiceError as se:
        return _error(se.message, se.status_code)
    except Exception as e:
        return _unexpected(e, 'Failed to retrieve communications', 'list_communications')


@communication_bp.route('/communications/<communication_id>', methods=['GET'])
def get_communication(communication_id):
    try:
        return jsonify(CommunicationService.get_by_id(communication_id)), 200
    except ServiceError as se:
        return _error(se.message, se.status_code)
    except Exception as e:
        return _unexpected(e, 'Failed to retrieve communication', 'get_communication')


@communication_bp.route('/communications/customer/<customer_id>', methods=['GET'])
def list_customer_communications(customer_id):
    try:
        return jsonify(CommunicationService.get_by_customer(customer_id)), 200
    except ServiceError as se:
        return _error(se.message, se.status_code)
    except Exception as e:
        return _unexpected(e, 'Failed to retrieve communications', 'list_customer_communications')


@communication_bp.route('/communications', methods=['POST'])
def create_communication():
    try:
        communication, degraded = CommunicationService.create(request.get_json() or {})
        return jsonify(_with_degraded(communication, degraded)), 201
    except ServiceError as se:
        return _error(se.message, se.status_code)
    except Exception as e:
        return _unexpected(e, 'Failed to create communication', 'create_communication')


@communication_bp.route('/communications/<communication_id>', methods=['PUT'])
def update_communication(communication_id):
    try:
        communication, degraded = CommunicationService.update(communication_id, request.get_json() or {})
        return jsonify(_with_degraded(communication, degraded)), 200
    except ServiceError as se:
        return _error(se.message, se.status_code)
    except Exception as e:
        return _unexpected(e, 'Failed to update communication', 'update_communication')


@communication_bp.route('/communications/<communication_id>', methods=['DELETE'])
def delete_communication(communication_id):
    try:
        CommunicationService.delete(communication_id)
        return jsonify({'success': True, 'message': 'Communication deleted successfully'}), 200
    except ServiceError as se:
        return _error(se.message, se.status_code)
    except Exception as e:
        return _unexpected(e, 'Failed to delete communication', 'delete_communication')
