"""Dashboard blueprint."""
from flask import Blueprint, jsonify, current_app, g
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.models import UserRole
from bizdesk.services import report_service, task_service

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


@dashboard_bp.route('', methods=['GET'])
@require_capability('view_dashboard')
def index():
    """
    Role-specific dashboard.

    - salesman: their current plan
    - worker: their current task
    - admin, manager, cashier: revenue/expense summary for the configured window
    """
    db_session = get_session()
    user = g.user

    if user.has_role(UserRole.SALESMAN):
        plan = task_service.get_salesman_plan(db_session, user.id)
        return jsonify({'user': user.to_dict(), 'plan': plan.to_dict() if plan else None})

    if user.has_role(UserRole.WORKER):
        task = task_service.get_worker_task(db_session, user.id)
        return jsonify({'user': user.to_dict(), 'task': task.to_dict() if task else None})

    days = current_app.config.get('DASHBOARD_WINDOW_DAYS', 30)
    summary = report_service.dashboard_summary(db_session, days=days)
    summary['user'] = user.to_dict()
    return jsonify(summary)
