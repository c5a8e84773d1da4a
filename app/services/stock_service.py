"""
Stock ledger: the only code allowed to change ``Product.stock``.

Every change is a conditional UPDATE (the row must still hold enough stock
at the instant of the write) followed by an append-only ``StockMovement``.
Callers own the transaction; nothing here commits.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.exceptions import InsufficientStockError, ValidationError
from app.models import Product, Sale, StockMovement, StockMovementType

logger = logging.getLogger(__name__)


def _current_stock(session: Session, product_id: int) -> int:
    return session.query(Product.stock).filter(Product.id == product_id).scalar()


def _apply_delta(session: Session, product: Product, delta: int) -> tuple:
    """
    Add ``delta`` to the product stock, refusing to go below zero.

    Returns (previous_stock, new_stock) as seen by this transaction.
    """
    query = session.query(Product).filter(Product.id == product.id)
    if delta < 0:
        query = query.filter(Product.stock >= -delta)

    updated = query.update(
        {Product.stock: Product.stock + delta, Product.updated_at: func.now()},
        synchronize_session=False,
    )
    if updated != 1:
        available = _current_stock(session, product.id)
        raise InsufficientStockError(product.id, product.name, -delta, available)

    new_stock = _current_stock(session, product.id)
    # Keep the in-session object in line with the row
    session.expire(product, ['stock'])
    return new_stock - delta, new_stock


def decrement_for_sale(session: Session, product: Product, quantity: int,
                       user_id: Optional[int], sale: Sale) -> StockMovement:
    """Take ``quantity`` units out of stock for ``sale`` (type SALE)."""
    if quantity <= 0:
        raise ValidationError('A quantidade deve ser maior que zero')

    previous_stock, new_stock = _apply_delta(session, product, -quantity)
    movement = StockMovement(
        product_id=product.id,
        type=StockMovementType.SALE,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=new_stock,
        reason=f'Venda #{sale.code}',
        sale_id=sale.id,
        user_id=user_id,
    )
    session.add(movement)
    logger.debug(f"[STOCK] SALE product={product.id} {previous_stock}->{new_stock} sale={sale.code}")
    return movement


def receive_stock(session: Session, product: Product, quantity: int,
                  user_id: Optional[int], reason: str = 'Entrada de estoque') -> StockMovement:
    """Add purchased/received units (type ENTRY)."""
    if quantity <= 0:
        raise ValidationError('A quantidade de entrada deve ser maior que zero')

    previous_stock, new_stock = _apply_delta(session, product, quantity)
    movement = StockMovement(
        product_id=product.id,
        type=StockMovementType.ENTRY,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=new_stock,
        reason=reason,
        user_id=user_id,
    )
    session.add(movement)
    logger.info(f"[STOCK] ENTRY product={product.id} {previous_stock}->{new_stock}")
    return movement


def adjust_stock(session: Session, product: Product, new_stock: int,
                 user_id: Optional[int], reason: str = 'Ajuste de estoque') -> Optional[StockMovement]:
    """
    Set stock to a counted value.

    Growth is recorded as ENTRY, shrinkage as ADJUSTMENT. ``quantity`` on
    the movement is always the absolute difference. Returns None when the
    count matches the current stock.
    """
    if new_stock is None or new_stock < 0:
        raise ValidationError('O estoque não pode ser negativo')

    current = _current_stock(session, product.id)
    delta = new_stock - current
    if delta == 0:
        return None

    previous_stock, stored = _apply_delta(session, product, delta)
    movement = StockMovement(
        product_id=product.id,
        type=StockMovementType.ENTRY if delta > 0 else StockMovementType.ADJUSTMENT,
        quantity=abs(delta),
        previous_stock=previous_stock,
        new_stock=stored,
        reason=reason,
        user_id=user_id,
    )
    session.add(movement)
    logger.info(f"[STOCK] {movement.type.value} product={product.id} {previous_stock}->{stored}")
    return movement


def list_movements(session: Session, product_id: int, limit: int = 10) -> List[StockMovement]:
    """Most recent movements of a product, newest first."""
    return session.query(StockMovement).filter(
        StockMovement.product_id == product_id
    ).order_by(StockMovement.id.desc()).limit(limit).all()
