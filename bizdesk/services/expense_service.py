"""Expense service."""
from datetime import date
from typing import List, Optional
import logging

from bizdesk.exceptions import BusinessLogicError, NotFoundError
from bizdesk.models import Expense
from bizdesk.utils.money import parse_money

logger = logging.getLogger(__name__)


def parse_date(value) -> date:
    if not value:
        return date.today()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise BusinessLogicError('Expense date must be YYYY-MM-DD')


def _validate_expense_data(data: dict) -> dict:
    category = (data.get('category') or '').strip()
    description = (data.get('description') or '').strip()
    if not category:
        raise BusinessLogicError('Expense category is required')
    if not description:
        raise BusinessLogicError('Expense description is required')
    return {
        'category': category,
        'description': description,
        'amount': parse_money(data.get('amount'), 'Expense amount', allow_zero=False),
        'date': parse_date(data.get('date')),
    }


def list_expenses(session, start: Optional[date] = None, end: Optional[date] = None) -> List[Expense]:
    query = session.query(Expense)
    if start:
        query = query.filter(Expense.date >= start)
    if end:
        query = query.filter(Expense.date <= end)
    return query.order_by(Expense.date.desc(), Expense.id.desc()).all()


def get_expense(session, expense_id: int) -> Expense:
    expense = session.get(Expense, expense_id)
    if not expense:
        raise NotFoundError(f'Expense {expense_id} not found', payload={'expense_id': expense_id})
    return expense


def create_expense(session, data: dict) -> Expense:
    expense = Expense(**_validate_expense_data(data))
    session.add(expense)
    session.commit()
    logger.info(f"Expense created: id={expense.id}, category={expense.category}, amount={expense.amount}")
    return expense


def update_expense(session, expense_id: int, data: dict) -> Expense:
    """Apply ``data`` over the stored expense; fields left out keep their values."""
    expense = get_expense(session, expense_id)
    current = {
        'category': expense.category,
        'description': expense.description,
        'amount': expense.amount,
        'date': expense.date,
    }
    current.update({k: v for k, v in data.items() if v is not None})
    for key, value in _validate_expense_data(current).items():
        setattr(expense, key, value)
    session.commit()
    logger.info(f"Expense updated: id={expense.id}")
    return expense


def delete_expense(session, expense_id: int) -> None:
    expense = get_expense(session, expense_id)
    session.delete(expense)
    session.commit()
    logger.info(f"Expense deleted: id={expense_id}")
