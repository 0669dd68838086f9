"""
Settings blueprint.
Application branding/currency settings and the admin data reset.
"""
from flask import Blueprint, jsonify, g, current_app
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.exceptions import BusinessLogicError, UnauthorizedError
from bizdesk.forms import SettingsForm, validate_form
from bizdesk.models import UserRole
from bizdesk.services import settings_service
from bizdesk.utils.request_data import get_payload

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('', methods=['GET'])
def get_settings():
    """Public: the login and signup pages need the app name, logos and signup flag."""
    return jsonify({'settings': settings_service.get_settings(get_session())})


@settings_bp.route('/currencies', methods=['GET'])
def currencies():
    return jsonify({'currencies': settings_service.CURRENCIES})


@settings_bp.route('', methods=['PUT', 'PATCH'])
@require_capability('manage_settings')
def update_settings():
    payload = get_payload()
    data = validate_form(SettingsForm, payload, partial=True)
    if 'signup_visible' in data and not g.user.has_role(UserRole.ADMIN):
        raise UnauthorizedError('Only an admin can change signup visibility')

    settings = settings_service.update_settings(get_session(), data)
    current_app.logger.info(f"Settings updated by user {g.user.id}")
    return jsonify({'status': 'ok', 'settings': settings})


@settings_bp.route('/reset', methods=['POST'])
@require_capability('reset_data')
def reset_data():
    """Body: {"groups": ["sales", "expenses", ...]}"""
    groups = get_payload().get('groups')
    if not isinstance(groups, list):
        raise BusinessLogicError('groups must be a list of data categories')

    cleared = settings_service.reset_data(get_session(), groups)
    current_app.logger.warning(f"Data reset by user {g.user.id}: {cleared}")
    return jsonify({'status': 'ok', 'cleared': cleared})
