"""
Catalog reader: read-only lookups used by checkout.

No business rules live here. Callers get ORM objects or a typed
not-found error.
"""
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.exceptions import (
    CustomerNotFoundError, PaymentMethodNotFoundError, ProductNotFoundError
)
from app.models import CardFeeSchedule, Customer, PaymentMethod, Product


def get_product_for_sale(session: Session, product_id: int) -> Product:
    """Product by id. Inactive products are returned; the caller decides."""
    product = session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def find_product_by_code(session: Session, code: str) -> Optional[Product]:
    """Exact SKU or barcode match (barcode scanner / CLI lookups)."""
    code = (code or '').strip()
    if not code:
        return None
    return session.query(Product).filter(or_(Product.sku == code, Product.barcode == code)).first()


def list_low_stock_products(session: Session) -> List[Product]:
    """Active products at or below their minimum stock threshold."""
    return session.query(Product).filter(
        Product.active.is_(True),
        Product.stock <= Product.min_stock
    ).order_by(Product.stock, Product.name).all()


def get_payment_method(session: Session, payment_method_id: int) -> PaymentMethod:
    method = session.get(PaymentMethod, payment_method_id)
    if method is None or not method.active:
        raise PaymentMethodNotFoundError(payment_method_id)
    return method


def get_active_fee_schedule(session: Session) -> Optional[CardFeeSchedule]:
    """The active card fee schedule, newest first when several are flagged."""
    return session.query(CardFeeSchedule).filter(
        CardFeeSchedule.active.is_(True)
    ).order_by(CardFeeSchedule.created_at.desc(), CardFeeSchedule.id.desc()).first()


def get_customer(session: Session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if customer is None or not customer.active:
        raise CustomerNotFoundError(customer_id)
    return customer
