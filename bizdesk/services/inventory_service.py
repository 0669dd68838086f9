"""Inventory service - product catalog and stock operations."""
from datetime import date
from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from bizdesk.exceptions import BusinessLogicError, ProductNotFoundError, InsufficientStockError
from bizdesk.models import Product
from bizdesk.utils.money import parse_money

logger = logging.getLogger(__name__)


def _validate_product_data(data: dict) -> dict:
    """Normalize and validate product fields coming from a form or JSON body."""
    name = (data.get('name') or '').strip()
    sku = (data.get('sku') or '').strip()
    if not name:
        raise BusinessLogicError('Product name is required')
    if not sku:
        raise BusinessLogicError('SKU is required')

    try:
        pieces_per_box = int(data.get('pieces_per_box', 1))
        stock = int(data.get('stock', 0))
    except (TypeError, ValueError):
        raise BusinessLogicError('Pieces per box and stock must be whole numbers')
    if pieces_per_box < 1:
        raise BusinessLogicError('Pieces per box must be at least 1')
    if stock < 0:
        raise BusinessLogicError('Stock cannot be negative')

    expiry_date = data.get('expiry_date') or None
    if isinstance(expiry_date, str):
        try:
            expiry_date = date.fromisoformat(expiry_date)
        except ValueError:
            raise BusinessLogicError('Expiry date must be YYYY-MM-DD')

    return {
        'name': name,
        'sku': sku,
        'pieces_per_box': pieces_per_box,
        'stock': stock,
        'cost_price': parse_money(data.get('cost_price', 0), 'cost_price'),
        'sale_price': parse_money(data.get('sale_price', 0), 'sale_price'),
        'expiry_date': expiry_date,
    }


def _ensure_unique_sku(session, sku: str, exclude_id: Optional[int] = None) -> None:
    query = session.query(Product).filter(func.lower(Product.sku) == sku.lower())
    if exclude_id:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise BusinessLogicError(f"A product with SKU '{sku}' already exists")


def list_products(session) -> List[Product]:
    return session.query(Product).order_by(Product.name).all()


def get_product(session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    return product


def create_product(session, data: dict) -> Product:
    """Create a product."""
    fields = _validate_product_data(data)
    _ensure_unique_sku(session, fields['sku'])

    product = Product(**fields)
    session.add(product)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError(f"A product with SKU '{fields['sku']}' already exists")

    logger.info(f"Product created: id={product.id}, sku={product.sku}, stock={product.stock}")
    return product


def update_product(session, product_id: int, data: dict) -> Product:
    """
    Update a product. The SKU is fixed after creation; stock can be corrected
    here by inventory managers (restocking), never below zero.
    """
    product = get_product(session, product_id)
    current = {
        'name': product.name,
        'pieces_per_box': product.pieces_per_box,
        'stock': product.stock,
        'cost_price': product.cost_price,
        'sale_price': product.sale_price,
        'expiry_date': product.expiry_date,
    }
    fields = _validate_product_data({**current, **data, 'sku': product.sku})
    fields.pop('sku')

    for key, value in fields.items():
        setattr(product, key, value)
    session.commit()

    logger.info(f"Product updated: id={product.id}, stock={product.stock}")
    return product


def delete_product(session, product_id: int) -> None:
    """Delete a product; sale lines keep their product name snapshot."""
    product = get_product(session, product_id)
    session.delete(product)
    session.commit()
    logger.info(f"Product deleted: id={product_id}")


def lock_products(session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """
    Read products FOR UPDATE inside the current transaction.

    Backends without row locks (SQLite) ignore the clause; the version_id
    column still rejects a stale write at commit.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    products = (
        session.query(Product)
        .filter(Product.id.in_(ids))
        .with_for_update()
        .all()
    )
    found = {p.id: p for p in products}
    for pid in ids:
        if pid not in found:
            raise ProductNotFoundError(pid)
    return found


def check_stock(products: Dict[int, Product], requested: Dict[int, int]) -> None:
    """Fail on the first product whose stock cannot cover the requested boxes."""
    for pid, qty in requested.items():
        product = products[pid]
        if product.stock < qty:
            raise InsufficientStockError(pid, product.stock, qty, product_name=product.name)


def decrement_stock(products: Dict[int, Product], requested: Dict[int, int]) -> None:
    """Apply already-validated stock decrements."""
    for pid, qty in requested.items():
        products[pid].stock = products[pid].stock - qty
