"""Stock Movement model."""
from sqlalchemy import Column, BigInteger, DateTime, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId
import enum


class StockMovementType(enum.Enum):
    """Stock movement type enum."""
    ENTRY = "ENTRY"
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"


class StockMovement(Base):
    """Stock Movement (movimentação de estoque). Append-only audit record."""

    __tablename__ = 'stock_movement'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False, index=True)
    type = Column(Enum(StockMovementType, name='stock_movement_type'), nullable=False)
    quantity = Column(BigInteger, nullable=False)
    previous_stock = Column(BigInteger, nullable=False)
    new_stock = Column(BigInteger, nullable=False)
    reason = Column(Text, nullable=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id'), nullable=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    product = relationship('Product')

    def __repr__(self):
        return (
            f"<StockMovement(id={self.id}, type={self.type.value}, product_id={self.product_id}, "
            f"{self.previous_stock}->{self.new_stock})>"
        )
