"""
Authentication blueprint.
Handles signup, login, logout and the current-user endpoint (session cookie).
"""

from flask import Blueprint, jsonify, request, session, g, current_app
from flask_wtf.csrf import generate_csrf
from bizdesk.database import get_session
from bizdesk.decorators.permissions import capabilities_for, require_capability
from bizdesk.exceptions import BusinessLogicError, UnauthorizedError
from bizdesk.middleware import require_login
from bizdesk.services import auth_service, settings_service
from bizdesk.utils.request_data import get_payload

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


def _login(user):
    session.clear()
    session['user_id'] = user.id
    session.permanent = True


@auth_bp.route('/csrf-token')
def csrf_token():
    """Token to send back in the X-CSRFToken header on unsafe requests."""
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Create an account and log it in. Blocked when signup is hidden in settings."""
    db_session = get_session()
    if not settings_service.get_settings(db_session)['signup_visible']:
        raise UnauthorizedError('Signup is currently disabled')

    data = get_payload()
    if data.get('password') != data.get('password_confirm', data.get('password')):
        raise BusinessLogicError('Passwords do not match')

    user = auth_service.register_user(
        db_session,
        email=data.get('email'),
        password=data.get('password'),
        name=data.get('name'),
        role=data.get('role') or None,
        gender=data.get('gender') or None,
    )
    _login(user)
    current_app.logger.info(f"Signup: user {user.id} ({user.role})")
    return jsonify({'status': 'ok', 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = get_payload()
    user = auth_service.authenticate(get_session(), data.get('email'), data.get('password'))
    _login(user)
    return jsonify({'status': 'ok', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'ok'})


@auth_bp.route('/me')
@require_login
def me():
    user = g.user
    return jsonify({'user': user.to_dict(), 'capabilities': capabilities_for(user.role)})


@auth_bp.route('/users')
@require_capability('manage_worker_tasks', 'manage_sales_plans', 'manage_settings')
def users():
    """Active users, optionally filtered by ?role= (task and plan assignment pickers)."""
    role = request.args.get('role') or None
    return jsonify({'users': [u.to_dict() for u in auth_service.list_users(get_session(), role)]})
