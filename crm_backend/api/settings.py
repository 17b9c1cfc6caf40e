import logging
from flask import Blueprint, jsonify
from crm_backend.services.settings_service import SettingsService

settings_bp = Blueprint('settings', __name__)


@settings_bp.route('/settings/user', methods=['GET'])
def get_user_settings():
    try:
        return jsonify(SettingsService.get_user_settings()), 200
    except Exception as e:
        logging.error(f"Error fetching user settings: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to retrieve user settings'}), 500
