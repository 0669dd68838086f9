"""Products (inventory) blueprint."""
from flask import Blueprint, jsonify, current_app
from bizdesk.database import get_session
from bizdesk.decorators.permissions import require_capability
from bizdesk.forms import ProductForm, validate_form
from bizdesk.services import inventory_service
from bizdesk.utils.request_data import get_payload

products_bp = Blueprint('products', __name__, url_prefix='/products')


@products_bp.route('', methods=['GET'])
@require_capability('view_inventory', 'create_sales')
def list_products():
    """Product list (inventory page and the sale form's product picker)."""
    products = inventory_service.list_products(get_session())
    return jsonify({'products': [p.to_dict() for p in products]})


@products_bp.route('/<int:product_id>', methods=['GET'])
@require_capability('view_inventory', 'create_sales')
def get_product(product_id):
    return jsonify({'product': inventory_service.get_product(get_session(), product_id).to_dict()})


@products_bp.route('', methods=['POST'])
@require_capability('manage_inventory')
def create_product():
    data = validate_form(ProductForm, get_payload())
    product = inventory_service.create_product(get_session(), data)
    current_app.logger.info(f"Product {product.id} created")
    return jsonify({'status': 'ok', 'product': product.to_dict()}), 201


@products_bp.route('/<int:product_id>', methods=['PUT', 'PATCH'])
@require_capability('manage_inventory')
def update_product(product_id):
    data = validate_form(ProductForm, get_payload(), partial=True)
    product = inventory_service.update_product(get_session(), product_id, data)
    return jsonify({'status': 'ok', 'product': product.to_dict()})


@products_bp.route('/<int:product_id>', methods=['DELETE'])
@require_capability('manage_inventory')
def delete_product(product_id):
    inventory_service.delete_product(get_session(), product_id)
    return jsonify({'status': 'ok'})
