"""Expenses blueprint."""
from flask import Blueprint, jsonify, request
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.forms import ExpenseForm, validate_form
from bizdesk.services import expense_service
from bizdesk.utils.request_data import get_payload

expenses_bp = Blueprint('expenses', __name__, url_prefix='/expenses')


@expenses_bp.route('', methods=['GET'])
@require_capability('manage_expenses')
def list_expenses():
    start = request.args.get('start_date')
    end = request.args.get('end_date')
    expenses = expense_service.list_expenses(
        get_session(),
        start=expense_service.parse_date(start) if start else None,
        end=expense_service.parse_date(end) if end else None,
    )
    return jsonify({'expenses': [e.to_dict() for e in expenses]})


@expenses_bp.route('', methods=['POST'])
@require_capability('manage_expenses')
def create_expense():
    data = validate_form(ExpenseForm, get_payload())
    expense = expense_service.create_expense(get_session(), data)
    return jsonify({'status': 'ok', 'expense': expense.to_dict()}), 201


@expenses_bp.route('/<int:expense_id>', methods=['PUT', 'PATCH'])
@require_capability('manage_expenses')
def update_expense(expense_id):
    session = get_session()
    payload = get_payload()
    if request.method == 'PATCH':
        stored = expense_service.get_expense(session, expense_id).to_dict()
        payload = {**stored, **payload}
    data = validate_form(ExpenseForm, payload)
    expense = expense_service.update_expense(session, expense_id, data)
    return jsonify({'status': 'ok', 'expense': expense.to_dict()})


@expenses_bp.route('/<int:expense_id>', methods=['DELETE'])
@require_capability('manage_expenses')
def delete_expense(expense_id):
    expense_service.delete_expense(get_session(), expense_id)
    return jsonify({'status': 'ok'})
