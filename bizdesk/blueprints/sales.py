"""
Sales blueprint.
Sale creation (point of sale) and the sales records list.
"""
from datetime import datetime
from flask import Blueprint, jsonify, request, g, current_app
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability, has_capability
from bizdesk.exceptions import BusinessLogicError, SaleNotFoundError
from bizdesk.models import UserRole
from bizdesk.services import customer_service, sales_service
from bizdesk.utils.request_data import get_payload

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


def _parse_sale_date(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise BusinessLogicError('Sale date must be an ISO date or datetime')


@sales_bp.route('', methods=['POST'])
@require_capability('create_sales')
def create_sale():
    """
    Create a sale.

    Body:
        customer_id or new_customer {name, phone, address}
        lines [{product_id, quantity, unit_price}]
        discount, amount_received, date (optional)
    """
    db_session = get_session()
    data = get_payload()
    lines = data.get('lines')
    if not isinstance(lines, list):
        raise BusinessLogicError('Please add at least one product')
    new_customer = data.get('new_customer')
    if new_customer is not None and not isinstance(new_customer, dict):
        raise BusinessLogicError('new_customer must be an object')

    # A salesman can only sell to their own customers
    if not new_customer and data.get('customer_id') not in (None, '') and g.user.has_role(UserRole.SALESMAN):
        try:
            customer_id = int(data['customer_id'])
        except (TypeError, ValueError):
            raise BusinessLogicError('Invalid customer id')
        customer_service.get_customer(db_session, customer_id, g.user)

    sale = sales_service.create_sale(
        db_session,
        salesman_id=g.user.id,
        lines=lines,
        customer_id=data.get('customer_id'),
        new_customer=new_customer,
        discount=data.get('discount', 0),
        amount_received=data.get('amount_received', 0),
        sale_date=_parse_sale_date(data.get('date')),
    )
    current_app.logger.info(f"Sale {sale.id} created by user {g.user.id}")
    return jsonify({'status': 'ok', 'sale': sale.to_dict()}), 201


@sales_bp.route('', methods=['GET'])
@require_capability('view_sales_records')
def list_sales():
    """Sales records (?salesman_id=, ?limit=)."""
    salesman_id = request.args.get('salesman_id', type=int)
    limit = request.args.get('limit', type=int)
    sales = sales_service.list_sales(get_session(), salesman_id=salesman_id, limit=limit)
    return jsonify({'sales': [s.to_dict() for s in sales]})


@sales_bp.route('/<int:sale_id>', methods=['GET'])
@require_capability('view_sales_records', 'create_sales')
def get_sale(sale_id):
    sale = sales_service.get_sale(get_session(), sale_id)
    # Without sales records access a user sees only their own sales
    if not has_capability(g.user.role, 'view_sales_records') and sale.salesman_id != g.user.id:
        raise SaleNotFoundError(sale_id)
    data = sale.to_dict()
    data['payments'] = [p.to_dict() for p in sale.payments]
    return jsonify({'sale': data})
