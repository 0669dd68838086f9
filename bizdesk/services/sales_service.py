"""
Sales service with transactional logic.
Handles sale creation: stock validation, customer balance, payment record and stock decrement.
"""
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from bizdesk.exceptions import BusinessLogicError, InvalidAmountError, CustomerNotFoundError, SaleNotFoundError
from bizdesk.models import Customer, Sale, SaleLine, Payment
from bizdesk.services.inventory_service import lock_products, check_stock, decrement_stock
from bizdesk.services.transaction import run_in_transaction
from bizdesk.utils.money import parse_money, parse_quantity, quantize, ZERO

logger = logging.getLogger(__name__)


def _normalize_lines(lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate the shape of the requested sale lines before touching the database."""
    if not lines:
        raise BusinessLogicError('Please add at least one product')

    normalized = []
    for index, line in enumerate(lines, start=1):
        product_id = line.get('product_id')
        if product_id in (None, ''):
            raise BusinessLogicError(f'Line {index}: product is required')
        try:
            product_id = int(product_id)
        except (TypeError, ValueError):
            raise BusinessLogicError(f'Line {index}: invalid product id')

        normalized.append({
            'product_id': product_id,
            'quantity': parse_quantity(line.get('quantity'), f'Line {index} quantity'),
            'unit_price': parse_money(line.get('unit_price'), f'Line {index} unit price'),
        })
    return normalized


def _normalize_new_customer(new_customer: Dict[str, Any]) -> Dict[str, str]:
    data = {
        'name': (new_customer.get('name') or '').strip(),
        'phone': (new_customer.get('phone') or '').strip(),
        'address': (new_customer.get('address') or '').strip(),
    }
    if not all(data.values()):
        raise BusinessLogicError('Please fill new customer details (name, phone and address)')
    return data


def calculate_total(lines: List[Dict[str, Any]], discount: Decimal) -> Decimal:
    """total = sum(quantity * unit_price) - discount"""
    subtotal = sum((line['quantity'] * line['unit_price'] for line in lines), ZERO)
    return quantize(subtotal - discount)


def create_sale(
    session,
    salesman_id: Optional[int],
    lines: List[Dict[str, Any]],
    customer_id: Optional[int] = None,
    new_customer: Optional[Dict[str, Any]] = None,
    discount: Any = 0,
    amount_received: Any = 0,
    sale_date: Optional[datetime] = None,
) -> Sale:
    """
    Create a sale atomically.

    Inside one transaction: validate stock for every line, resolve (or create) the
    customer and add the sale's due amount to its balance, insert the sale, record
    the payment received on the spot, and decrement stock. Any failure aborts the
    whole operation with no side effects.

    Args:
        session: SQLAlchemy session
        salesman_id: user credited with the sale
        lines: [{'product_id', 'quantity', 'unit_price'}, ...] (non-empty)
        customer_id: existing customer (ignored when new_customer is given)
        new_customer: {'name', 'phone', 'address'} to create inline
        discount: flat discount >= 0
        amount_received: amount paid at sale time, 0 <= amount_received <= total
        sale_date: defaults to now

    Returns:
        The committed Sale.

    Raises:
        BusinessLogicError, InvalidAmountError, InsufficientStockError,
        ProductNotFoundError, CustomerNotFoundError, TransactionConflictError
    """
    normalized_lines = _normalize_lines(lines)
    discount = parse_money(discount, 'discount')
    amount_received = parse_money(amount_received, 'amount received')
    customer_fields = _normalize_new_customer(new_customer) if new_customer else None
    if customer_fields is None:
        if customer_id in (None, ''):
            raise BusinessLogicError('Please select a customer')
        try:
            customer_id = int(customer_id)
        except (TypeError, ValueError):
            raise BusinessLogicError('Invalid customer id')
    sale_date = sale_date or datetime.now()

    total_amount = calculate_total(normalized_lines, discount)
    if total_amount < 0:
        raise InvalidAmountError('Discount cannot exceed the sale subtotal')
    if amount_received > total_amount:
        raise InvalidAmountError('Amount received cannot be greater than the total amount')
    due_amount = total_amount - amount_received

    # Repeated product ids draw from the same stock
    requested: Dict[int, int] = OrderedDict()
    for line in normalized_lines:
        requested[line['product_id']] = requested.get(line['product_id'], 0) + line['quantity']

    def work(tx):
        # 1. Stock check
        products = lock_products(tx, requested.keys())
        check_stock(products, requested)

        # 2. Customer (new or existing)
        if customer_fields:
            customer = Customer(
                salesman_id=salesman_id,
                total_due=due_amount,
                **customer_fields
            )
            tx.add(customer)
            tx.flush()
        else:
            customer = (
                tx.query(Customer)
                .filter(Customer.id == customer_id)
                .with_for_update()
                .first()
            )
            if not customer:
                raise CustomerNotFoundError(customer_id)
            customer.total_due = quantize(customer.total_due + due_amount)

        # 3. Sale
        sale = Sale(
            date=sale_date,
            salesman_id=salesman_id,
            customer_id=customer.id,
            customer_name=customer.name,
            customer_phone=customer.phone,
            customer_address=customer.address,
            discount=discount,
            total_amount=total_amount,
            paid_amount=amount_received,
            due_amount=due_amount,
        )
        for line in normalized_lines:
            sale.lines.append(SaleLine(
                product_id=line['product_id'],
                product_name=products[line['product_id']].name,
                quantity=line['quantity'],
                unit_price=line['unit_price'],
            ))
        tx.add(sale)
        tx.flush()

        # 4. Payment received at sale time
        if amount_received > 0:
            tx.add(Payment(
                sale_id=sale.id,
                customer_id=customer.id,
                salesman_id=salesman_id,
                amount=amount_received,
                date=sale_date,
            ))

        # 5. Stock
        decrement_stock(products, requested)
        return sale

    sale = run_in_transaction(session, work, name='create_sale')

    logger.info(
        f"Sale created: id={sale.id}, customer={sale.customer_id}, total={sale.total_amount}, "
        f"paid={sale.paid_amount}, due={sale.due_amount}"
    )
    _record_sale_metric(sale)
    return sale


def list_sales(session, salesman_id: Optional[int] = None, limit: Optional[int] = None) -> List[Sale]:
    """Sales records, newest first."""
    query = session.query(Sale)
    if salesman_id is not None:
        query = query.filter(Sale.salesman_id == salesman_id)
    query = query.order_by(Sale.date.desc(), Sale.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_sale(session, sale_id: int) -> Sale:
    sale = session.get(Sale, sale_id)
    if not sale:
        raise SaleNotFoundError(sale_id)
    return sale


def _record_sale_metric(sale: Sale) -> None:
    try:
        from bizdesk.blueprints.metrics import sales_created_total
        sales_created_total.inc()
    except Exception as e:
        logger.debug(f"Could not record sale metric: {e}")
