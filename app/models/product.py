"""Product model."""
from sqlalchemy import Column, BigInteger, String, Boolean, Numeric, DateTime, CheckConstraint
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class Product(Base):
    """Product model."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(64), nullable=False, unique=True)
    barcode = Column(String(64), nullable=True, unique=True)
    cost_price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    sale_price = Column(Numeric(10, 2), nullable=False)
    # Only mutated through app.services.stock_service
    stock = Column(BigInteger, nullable=False, default=0, server_default='0')
    min_stock = Column(BigInteger, nullable=False, default=0, server_default='0')
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}', stock={self.stock})>"

    @property
    def is_low_stock(self):
        return self.stock <= self.min_stock
