"""
Customer service - customer records and the customer ledger.

Customer.total_due is a stored aggregate. Only sale creation and payment
application change it, each inside the transaction that writes the Sale or
Payment causing the change. The helpers at the bottom of this module fold the
sales again to detect drift.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func

from bizdesk.exceptions import BusinessLogicError, CustomerNotFoundError, NotFoundError
from bizdesk.models import AppUser, Customer, Sale, Payment, UserRole
from bizdesk.utils.money import quantize, ZERO

logger = logging.getLogger(__name__)


def _validate_customer_data(data: dict) -> Dict[str, str]:
    fields = {
        'name': (data.get('name') or '').strip(),
        'phone': (data.get('phone') or '').strip(),
        'address': (data.get('address') or '').strip(),
    }
    if not fields['name']:
        raise BusinessLogicError('Customer name is required')
    if not fields['phone']:
        raise BusinessLogicError('Customer phone is required')
    if not fields['address']:
        raise BusinessLogicError('Customer address is required')
    return fields


def list_customers(session, user: Optional[AppUser] = None) -> List[Customer]:
    """List customers; a salesman only sees the customers they own."""
    query = session.query(Customer)
    if user is not None and user.has_role(UserRole.SALESMAN):
        query = query.filter(Customer.salesman_id == user.id)
    return query.order_by(Customer.name).all()


def get_customer(session, customer_id: int, user: Optional[AppUser] = None) -> Customer:
    customer = session.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFoundError(customer_id)
    if user is not None and user.has_role(UserRole.SALESMAN) and customer.salesman_id != user.id:
        # Not visible to this salesman
        raise CustomerNotFoundError(customer_id)
    return customer


def _resolve_salesman(session, salesman_id) -> Optional[int]:
    """Check that ``salesman_id`` names an existing salesman; blank means unassigned."""
    if salesman_id is None or salesman_id == '':
        return None
    if isinstance(salesman_id, bool):
        raise BusinessLogicError('Invalid salesman')
    try:
        salesman_id = int(salesman_id)
    except (TypeError, ValueError):
        raise BusinessLogicError('Invalid salesman')
    user = session.get(AppUser, salesman_id)
    if not user:
        raise NotFoundError(f'User {salesman_id} not found', payload={'user_id': salesman_id})
    if not user.has_role(UserRole.SALESMAN):
        raise BusinessLogicError(f'User {user.name} is not a salesman')
    return user.id


def create_customer(session, data: dict, salesman_id: Optional[int] = None) -> Customer:
    """Create a customer with a zero balance."""
    fields = _validate_customer_data(data)
    salesman_id = _resolve_salesman(session, salesman_id)
    customer = Customer(salesman_id=salesman_id, total_due=ZERO, **fields)
    session.add(customer)
    session.commit()
    logger.info(f"Customer created: id={customer.id}, salesman={salesman_id}")
    return customer


def update_customer(session, customer_id: int, data: dict, user: Optional[AppUser] = None) -> Customer:
    """Update contact details. total_due is never edited here."""
    customer = get_customer(session, customer_id, user)
    fields = _validate_customer_data(data)
    for key, value in fields.items():
        setattr(customer, key, value)
    session.commit()
    logger.info(f"Customer updated: id={customer.id}")
    return customer


def delete_customer(session, customer_id: int, user: Optional[AppUser] = None) -> None:
    """Delete a customer. Refused while the customer still has sales."""
    customer = get_customer(session, customer_id, user)
    sale_count = session.query(func.count(Sale.id)).filter(Sale.customer_id == customer.id).scalar()
    if sale_count:
        raise BusinessLogicError(
            f'Cannot delete customer {customer.name}: {sale_count} sale(s) are recorded against it'
        )
    session.delete(customer)
    session.commit()
    logger.info(f"Customer deleted: id={customer_id}")


def customer_ledger(session, customer_id: int, user: Optional[AppUser] = None) -> Dict[str, Any]:
    """
    Customer detail: the customer, its sales (newest first) and the payments
    received against each sale.
    """
    customer = get_customer(session, customer_id, user)
    sales = (
        session.query(Sale)
        .filter(Sale.customer_id == customer.id)
        .order_by(Sale.date.desc(), Sale.id.desc())
        .all()
    )
    payments = (
        session.query(Payment)
        .filter(Payment.customer_id == customer.id)
        .order_by(Payment.date.asc(), Payment.id.asc())
        .all()
    )
    by_sale: Dict[int, List[Payment]] = {}
    for payment in payments:
        by_sale.setdefault(payment.sale_id, []).append(payment)

    sale_rows = []
    for sale in sales:
        row = sale.to_dict()
        row['payments'] = [p.to_dict() for p in by_sale.get(sale.id, [])]
        sale_rows.append(row)

    return {
        'customer': customer.to_dict(),
        'sales': sale_rows,
        'total_paid': str(quantize(sum((p.amount for p in payments), ZERO))),
    }


def recompute_total_due(session, customer_id: int) -> Decimal:
    """Fold Σ due_amount over the customer's sales."""
    total = (
        session.query(func.coalesce(func.sum(Sale.due_amount), 0))
        .filter(Sale.customer_id == customer_id)
        .scalar()
    )
    return quantize(Decimal(str(total)))


def find_ledger_drift(session) -> List[Dict[str, Any]]:
    """
    Customers whose stored total_due no longer matches the sum of their sales'
    due amounts.
    """
    folded = dict(
        session.query(Sale.customer_id, func.coalesce(func.sum(Sale.due_amount), 0))
        .group_by(Sale.customer_id)
        .all()
    )

    drift = []
    for customer in session.query(Customer).order_by(Customer.id).all():
        expected = quantize(Decimal(str(folded.get(customer.id, 0))))
        stored = quantize(customer.total_due)
        if stored != expected:
            drift.append({
                'customer_id': customer.id,
                'name': customer.name,
                'stored_total_due': str(stored),
                'expected_total_due': str(expected),
            })

    if drift:
        logger.warning(f"Ledger drift detected for {len(drift)} customer(s)")
    return drift
