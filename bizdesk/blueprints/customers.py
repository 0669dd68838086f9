"""
Customers blueprint.
Customer records, the per-customer ledger and payment receipt.
"""
from flask import Blueprint, jsonify, g, current_app
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.forms import CustomerForm, PaymentForm, validate_form
from bizdesk.models import UserRole
from bizdesk.services import customer_service, payment_service
from bizdesk.utils.request_data import get_payload

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')

CUSTOMER_READ = ('manage_customers', 'view_own_customers')


@customers_bp.route('', methods=['GET'])
@require_capability(*CUSTOMER_READ)
def list_customers():
    """All customers, or only the caller's own customers for a salesman."""
    customers = customer_service.list_customers(get_session(), g.user)
    return jsonify({'customers': [c.to_dict() for c in customers]})


@customers_bp.route('', methods=['POST'])
@require_capability(*CUSTOMER_READ)
def create_customer():
    payload = get_payload()
    data = validate_form(CustomerForm, payload)
    # A salesman always owns the customers they add
    salesman_id = g.user.id if g.user.has_role(UserRole.SALESMAN) else payload.get('salesman_id')
    customer = customer_service.create_customer(get_session(), data, salesman_id=salesman_id)
    return jsonify({'status': 'ok', 'customer': customer.to_dict()}), 201


@customers_bp.route('/<int:customer_id>', methods=['PUT', 'PATCH'])
@require_capability(*CUSTOMER_READ)
def update_customer(customer_id):
    data = validate_form(CustomerForm, get_payload())
    customer = customer_service.update_customer(get_session(), customer_id, data, g.user)
    return jsonify({'status': 'ok', 'customer': customer.to_dict()})


@customers_bp.route('/<int:customer_id>', methods=['DELETE'])
@require_capability('manage_customers')
def delete_customer(customer_id):
    customer_service.delete_customer(get_session(), customer_id)
    return jsonify({'status': 'ok'})


@customers_bp.route('/<int:customer_id>/ledger', methods=['GET'])
@require_capability(*CUSTOMER_READ)
def customer_ledger(customer_id):
    """Customer detail: sales with their payments."""
    return jsonify(customer_service.customer_ledger(get_session(), customer_id, g.user))


@customers_bp.route('/<int:customer_id>/payments', methods=['POST'])
@require_capability('receive_payments')
def receive_payment(customer_id):
    """Apply a payment to one of the customer's sales."""
    db_session = get_session()
    data = validate_form(PaymentForm, get_payload())

    # Visibility check (a salesman can only collect from their own customers)
    customer_service.get_customer(db_session, customer_id, g.user)

    payment = payment_service.apply_payment(
        db_session,
        sale_id=data['sale_id'],
        customer_id=customer_id,
        amount=data['amount'],
        salesman_id=g.user.id,
    )
    current_app.logger.info(f"Payment {payment.id} received by user {g.user.id}")
    return jsonify({'status': 'ok', 'payment': payment.to_dict()}), 201
