"""
Reports blueprint.
Date-range reports over ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD (inclusive).
"""
from flask import Blueprint, jsonify, request, g
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability, has_capability
from bizdesk.exceptions import UnauthorizedError
from bizdesk.forms import ReportRangeForm, validate_form
from bizdesk.models import UserRole
from bizdesk.services import report_service

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _date_range():
    data = validate_form(ReportRangeForm, request.args)
    return data['start_date'], data['end_date']


@reports_bp.route('/sales')
@require_capability('view_financial_reports')
def sales_report():
    start, end = _date_range()
    salesman_id = request.args.get('salesman_id', type=int)
    return jsonify(report_service.sales_report(get_session(), start, end, salesman_id=salesman_id))


@reports_bp.route('/my-sales')
@require_capability('create_sales')
def my_sales_report():
    start, end = _date_range()
    return jsonify(report_service.my_sales_report(get_session(), g.user, start, end))


@reports_bp.route('/expenses')
@require_capability('view_financial_reports')
def expense_report():
    start, end = _date_range()
    return jsonify(report_service.expense_report(get_session(), start, end))


@reports_bp.route('/profit-loss')
@require_capability('view_financial_reports')
def profit_and_loss():
    start, end = _date_range()
    return jsonify(report_service.profit_and_loss(get_session(), start, end))


@reports_bp.route('/task-history')
@require_capability('view_reports')
def task_history():
    """A worker gets their own history; managers pass ?worker_id=."""
    worker_id = request.args.get('worker_id', type=int)
    if g.user.has_role(UserRole.WORKER):
        if worker_id not in (None, g.user.id):
            raise UnauthorizedError('Workers can only view their own task history')
        worker_id = g.user.id
    elif not has_capability(g.user.role, 'manage_worker_tasks'):
        raise UnauthorizedError('You do not have permission to view task history')
    elif worker_id is None:
        worker_id = g.user.id

    return jsonify({'worker_id': worker_id,
                    'tasks': report_service.worker_task_history_report(get_session(), worker_id)})
