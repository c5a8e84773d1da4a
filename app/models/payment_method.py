"""Payment Method model."""
from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from app.database import Base, BigIntId
import enum


class PaymentMethodType(enum.Enum):
    """Payment method type enum."""
    CASH = "CASH"
    PIX = "PIX"
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    TRANSFER = "TRANSFER"

    @property
    def uses_card_machine(self):
        return self in (PaymentMethodType.CREDIT, PaymentMethodType.DEBIT)


class PaymentMethod(Base):
    """Payment Method (forma de pagamento)."""

    __tablename__ = 'payment_method'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(Enum(PaymentMethodType, name='payment_method_type'), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<PaymentMethod(id={self.id}, name='{self.name}', type={self.type.value})>"
