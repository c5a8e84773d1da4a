"""Sale model."""
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId
import enum


class SaleStatus(enum.Enum):
    """Sale status enum. Checkout only ever produces COMPLETED."""
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class DiscountType(enum.Enum):
    """Order-level discount kind."""
    VALUE = "VALUE"
    PERCENT = "PERCENT"


class Sale(Base):
    """Sale (venda concluída). Never mutated after checkout."""

    __tablename__ = 'sale'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True, index=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id'), nullable=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False)
    status = Column(Enum(SaleStatus, name='sale_status'), nullable=False, default=SaleStatus.COMPLETED)

    subtotal = Column(Numeric(10, 2), nullable=False)
    discount_type = Column(Enum(DiscountType, name='discount_type'), nullable=True)
    discount_value = Column(Numeric(10, 2), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    total_cost = Column(Numeric(10, 2), nullable=False)
    profit = Column(Numeric(10, 2), nullable=False)
    total_fees = Column(Numeric(10, 2), nullable=False, default=0)
    net_profit = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='sales')
    user = relationship('AppUser')
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan',
                         order_by='SaleItem.id')
    payments = relationship('SalePayment', back_populates='sale', cascade='all, delete-orphan',
                            order_by='SalePayment.id')

    def __repr__(self):
        return f"<Sale(id={self.id}, code='{self.code}', total={self.total}, status={self.status.value})>"
