"""
Report service - read-only aggregation over sales, expenses and task history.

Date ranges are inclusive on both ends: the end date covers the whole day
through 23:59:59.999999.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
import logging

from sqlalchemy import func, desc

from bizdesk.exceptions import BusinessLogicError
from bizdesk.models import AppUser, Expense, Sale, SaleLine, WorkerTaskHistory
from bizdesk.utils.money import quantize, ZERO

logger = logging.getLogger(__name__)


def _to_date(value, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise BusinessLogicError(f'{field} must be YYYY-MM-DD')


def validate_date_range(start, end) -> Tuple[date, date]:
    """Both dates are required and start must not be after end."""
    if not start or not end:
        raise BusinessLogicError('Please select both a start and an end date')
    start_date = _to_date(start, 'Start date')
    end_date = _to_date(end, 'End date')
    if start_date > end_date:
        raise BusinessLogicError('Start date must be on or before the end date')
    return start_date, end_date


def _datetime_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


def _sum(values) -> Decimal:
    return quantize(sum(values, ZERO))


def sales_report(session, start, end, salesman_id: Optional[int] = None) -> Dict[str, Any]:
    """Revenue, discount and sale count for the range, with the sales themselves."""
    start_date, end_date = validate_date_range(start, end)
    start_dt, end_dt = _datetime_bounds(start_date, end_date)

    query = session.query(Sale).filter(Sale.date >= start_dt, Sale.date <= end_dt)
    if salesman_id is not None:
        query = query.filter(Sale.salesman_id == salesman_id)
    sales = query.order_by(Sale.date.desc(), Sale.id.desc()).all()

    return {
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'total_revenue': str(_sum(s.total_amount for s in sales)),
        'total_discount': str(_sum(s.discount for s in sales)),
        'total_due': str(_sum(s.due_amount for s in sales)),
        'total_sales': len(sales),
        'sales': [s.to_dict() for s in sales],
    }


def my_sales_report(session, user: AppUser, start, end) -> Dict[str, Any]:
    """Sales report restricted to the sales recorded by ``user``."""
    return sales_report(session, start, end, salesman_id=user.id)


def expense_report(session, start, end) -> Dict[str, Any]:
    start_date, end_date = validate_date_range(start, end)
    expenses = (
        session.query(Expense)
        .filter(Expense.date >= start_date, Expense.date <= end_date)
        .order_by(Expense.date.desc(), Expense.id.desc())
        .all()
    )
    return {
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'total_expenses': str(_sum(e.amount for e in expenses)),
        'expense_count': len(expenses),
        'expenses': [e.to_dict() for e in expenses],
    }


def _revenue_between(session, start_dt: datetime, end_dt: datetime) -> Decimal:
    total = session.query(func.coalesce(func.sum(Sale.total_amount), 0)).filter(
        Sale.date >= start_dt,
        Sale.date <= end_dt
    ).scalar()
    return quantize(Decimal(str(total)))


def _expenses_between(session, start_date: date, end_date: date) -> Decimal:
    total = session.query(func.coalesce(func.sum(Expense.amount), 0)).filter(
        Expense.date >= start_date,
        Expense.date <= end_date
    ).scalar()
    return quantize(Decimal(str(total)))


def profit_and_loss(session, start, end) -> Dict[str, Any]:
    """Net result = revenue - expenses over the range."""
    start_date, end_date = validate_date_range(start, end)
    start_dt, end_dt = _datetime_bounds(start_date, end_date)

    revenue = _revenue_between(session, start_dt, end_dt)
    expenses = _expenses_between(session, start_date, end_date)

    return {
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'total_revenue': str(revenue),
        'total_expenses': str(expenses),
        'net_profit_or_loss': str(quantize(revenue - expenses)),
    }


def worker_task_history_report(session, worker_id: int):
    """Completed tasks of one worker, newest first."""
    rows = (
        session.query(WorkerTaskHistory)
        .filter(WorkerTaskHistory.worker_id == worker_id)
        .order_by(WorkerTaskHistory.completed_at.desc(), WorkerTaskHistory.id.desc())
        .all()
    )
    return [row.to_dict() for row in rows]


def top_selling_products(session, since: datetime, limit: int = 5):
    """Products ranked by boxes sold since ``since`` (grouped by name snapshot)."""
    total_sold = func.sum(SaleLine.quantity).label('total_sold')
    rows = (
        session.query(SaleLine.product_name, total_sold)
        .join(Sale, Sale.id == SaleLine.sale_id)
        .filter(Sale.date >= since)
        .group_by(SaleLine.product_name)
        .order_by(desc('total_sold'), SaleLine.product_name)
        .limit(limit)
        .all()
    )
    return [{'name': row.product_name, 'quantity': int(row.total_sold or 0)} for row in rows]


def dashboard_summary(session, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Dashboard data for the last ``days`` days.

    Returns:
        dict with keys:
            - total_revenue, total_expenses, net_profit (strings)
            - top_products: top 5 products by quantity sold
            - recent_sales: last 5 sales
    """
    now = now or datetime.now()
    start_dt = now - timedelta(days=days)

    revenue = _revenue_between(session, start_dt, now)
    expenses = _expenses_between(session, start_dt.date(), now.date())

    recent_sales = (
        session.query(Sale)
        .order_by(Sale.date.desc(), Sale.id.desc())
        .limit(5)
        .all()
    )

    return {
        'window_days': days,
        'total_revenue': str(revenue),
        'total_expenses': str(expenses),
        'net_profit': str(quantize(revenue - expenses)),
        'top_products': top_selling_products(session, start_dt, limit=5),
        'recent_sales': [s.to_dict(with_lines=False) for s in recent_sales],
    }
