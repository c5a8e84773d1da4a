"""Card Fee Schedule model (maquininha)."""
from decimal import Decimal
from typing import Optional
from sqlalchemy import Column, BigInteger, String, Boolean, Numeric, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId

MIN_INSTALLMENTS = 1
MAX_INSTALLMENTS = 12


class CardFeeSchedule(Base):
    """
    Fee table charged by the card machine provider.

    All fees are percentages. ``installment_fees`` maps the installment
    count ("2".."12") to the percentage charged for a credit payment split
    in that many installments.
    """

    __tablename__ = 'card_fee_schedule'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    brand = Column(String(100), nullable=True)
    payment_method_id = Column(BigInteger, ForeignKey('payment_method.id'), nullable=True)
    credit_fee = Column(Numeric(5, 2), nullable=False, default=0, server_default='0.00')
    debit_fee = Column(Numeric(5, 2), nullable=False, default=0, server_default='0.00')
    pix_fee = Column(Numeric(5, 2), nullable=False, default=0, server_default='0.00')
    installment_fees = Column(JSON, nullable=False, default=dict)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    payment_method = relationship('PaymentMethod')

    def installment_fee(self, installments: int) -> Optional[Decimal]:
        """Percentage for a credit payment in N installments, None if not configured."""
        value = (self.installment_fees or {}).get(str(installments))
        if value is None:
            return None
        return Decimal(str(value))

    def __repr__(self):
        return f"<CardFeeSchedule(id={self.id}, name='{self.name}', active={self.active})>"
