"""
Text generation helpers blueprint.
Task descriptions, sales plan item lists, financial health summary and
salesman anomaly detection.
"""
from flask import Blueprint, jsonify, current_app
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.exceptions import NotFoundError
from bizdesk.models import AppUser
from bizdesk.services import report_service, text_generation_service
from bizdesk.utils.request_data import get_payload, parse_id

ai_bp = Blueprint('ai', __name__, url_prefix='/ai')


@ai_bp.route('/task-description', methods=['POST'])
@require_capability('manage_worker_tasks')
def task_description():
    """Body: {prompt, worker_id?} - the worker's gender picks the grammatical forms."""
    data = get_payload()
    gender = data.get('worker_gender')
    if data.get('worker_id') not in (None, ''):
        worker = get_session().get(AppUser, parse_id(data['worker_id'], 'worker id'))
        if worker is None:
            raise NotFoundError('Worker not found')
        gender = worker.gender
    return jsonify(text_generation_service.generate_task_description(data.get('prompt'), gender))


@ai_bp.route('/sales-plan-items', methods=['POST'])
@require_capability('manage_sales_plans')
def sales_plan_items():
    data = get_payload()
    return jsonify(text_generation_service.generate_sales_plan_items(data.get('prompt')))


@ai_bp.route('/financial-health', methods=['POST'])
@require_capability('view_financial_reports')
def financial_health():
    """Analyze the dashboard window (revenue, expenses, top products)."""
    days = current_app.config.get('DASHBOARD_WINDOW_DAYS', 30)
    summary = report_service.dashboard_summary(get_session(), days=days)
    top_products = ', '.join(p['name'] for p in summary['top_products'])
    return jsonify(text_generation_service.analyze_financial_health(
        summary['total_revenue'], summary['total_expenses'], top_products
    ))


@ai_bp.route('/anomaly', methods=['POST'])
@require_capability('run_anomaly_detection')
def anomaly():
    data = get_payload()
    return jsonify(text_generation_service.detect_salesman_anomaly(
        salesman_name=data.get('salesman_name'),
        sale_date=data.get('sale_date'),
        sale_time=data.get('sale_time'),
        customer_name=data.get('customer_name'),
        location_data=data.get('location_data'),
        products_sold=data.get('products_sold'),
        total_sale_amount=data.get('total_sale_amount'),
    ))
