"""Salesman plans blueprint."""
from flask import Blueprint, jsonify, request, g
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.services import task_service
from bizdesk.utils.request_data import get_payload, parse_id

plans_bp = Blueprint('plans', __name__, url_prefix='/plans')


@plans_bp.route('', methods=['GET'])
@require_capability('manage_sales_plans')
def list_plans():
    plans = task_service.list_salesman_plans(get_session())
    return jsonify({'plans': [p.to_dict() for p in plans]})


@plans_bp.route('', methods=['POST'])
@require_capability('manage_sales_plans')
def save_plan():
    """Assign a plan; the salesman's previous plan is archived."""
    data = get_payload()
    plan = task_service.save_salesman_plan(
        get_session(),
        salesman_id=parse_id(data.get('salesman_id'), 'salesman id'),
        location=data.get('location'),
        items_to_carry=data.get('items_to_carry'),
        assigned_by=g.user,
    )
    return jsonify({'status': 'ok', 'plan': plan.to_dict()}), 201


@plans_bp.route('/mine', methods=['GET'])
@require_capability('create_sales')
def my_plan():
    plan = task_service.get_salesman_plan(get_session(), g.user.id)
    return jsonify({'plan': plan.to_dict() if plan else None})


@plans_bp.route('/history', methods=['GET'])
@require_capability('manage_sales_plans')
def plan_history():
    salesman_id = request.args.get('salesman_id', type=int)
    history = task_service.salesman_plan_history(get_session(), salesman_id=salesman_id)
    return jsonify({'history': [h.to_dict() for h in history]})
