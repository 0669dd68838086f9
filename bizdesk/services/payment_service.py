"""Payment service - applies customer payments to sales (receive payment)."""
from datetime import datetime
from typing import Any, List, Optional
import logging

from bizdesk.exceptions import (
    BusinessLogicError, InvalidAmountError, SaleNotFoundError, CustomerNotFoundError
)
from bizdesk.models import Customer, Sale, Payment
from bizdesk.services.transaction import run_in_transaction
from bizdesk.utils.money import parse_money, quantize

logger = logging.getLogger(__name__)


def apply_payment(
    session,
    sale_id: int,
    customer_id: int,
    amount: Any,
    salesman_id: Optional[int] = None,
    paid_at: Optional[datetime] = None,
) -> Payment:
    """
    Apply a payment against a sale's due amount.

    In one transaction: re-read the sale and customer, check
    0 < amount <= sale.due_amount, move the amount from due to paid on the sale,
    lower the customer's total_due, and append the Payment record.

    Args:
        session: SQLAlchemy session
        sale_id: Sale being paid
        customer_id: Customer owning the sale
        amount: Payment amount
        salesman_id: User recording the payment
        paid_at: Payment date/time (defaults to now)

    Returns:
        The committed Payment.

    Raises:
        InvalidAmountError: amount <= 0 or greater than the current due amount
        SaleNotFoundError, CustomerNotFoundError, BusinessLogicError, TransactionConflictError
    """
    amount = parse_money(amount, 'payment amount')
    if amount <= 0:
        raise InvalidAmountError('Payment amount must be positive')
    paid_at = paid_at or datetime.now()

    def work(tx):
        sale = tx.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
        if not sale:
            raise SaleNotFoundError(sale_id)
        customer = tx.query(Customer).filter(Customer.id == customer_id).with_for_update().first()
        if not customer:
            raise CustomerNotFoundError(customer_id)
        if sale.customer_id != customer.id:
            raise BusinessLogicError(f'Sale {sale_id} does not belong to customer {customer_id}')

        if amount > sale.due_amount:
            raise InvalidAmountError(
                f'Payment cannot be more than the due amount ({sale.due_amount})',
                payload={'due_amount': str(sale.due_amount)}
            )

        # 1. Sale
        sale.paid_amount = quantize(sale.paid_amount + amount)
        sale.due_amount = quantize(sale.due_amount - amount)

        # 2. Customer balance
        customer.total_due = quantize(customer.total_due - amount)

        # 3. Payment record
        payment = Payment(
            sale_id=sale.id,
            customer_id=customer.id,
            salesman_id=salesman_id,
            amount=amount,
            date=paid_at,
        )
        tx.add(payment)
        tx.flush()
        return payment

    payment = run_in_transaction(session, work, name='apply_payment')

    logger.info(f"Payment applied: id={payment.id}, sale={sale_id}, customer={customer_id}, amount={amount}")
    _record_payment_metric()
    return payment


def list_payments(session, sale_id: Optional[int] = None, customer_id: Optional[int] = None) -> List[Payment]:
    query = session.query(Payment)
    if sale_id is not None:
        query = query.filter(Payment.sale_id == sale_id)
    if customer_id is not None:
        query = query.filter(Payment.customer_id == customer_id)
    return query.order_by(Payment.date.asc(), Payment.id.asc()).all()


def _record_payment_metric() -> None:
    try:
        from bizdesk.blueprints.metrics import payments_applied_total
        payments_applied_total.inc()
    except Exception as e:
        logger.debug(f"Could not record payment metric: {e}")
