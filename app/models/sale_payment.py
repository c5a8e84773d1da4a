"""Sale Payment model for mixed payment methods."""
from sqlalchemy import Column, BigInteger, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class SalePayment(Base):
    """
    Sale Payment - Individual payment for a sale.

    Allows mixed payment methods (e.g., CASH + CREDIT in 3x).
    ``fee`` is what the card machine keeps; ``net_amount`` is what the
    store actually receives.
    """

    __tablename__ = 'sale_payment'
    __table_args__ = (
        CheckConstraint('installments >= 1', name='ck_sale_payment_installments'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id', ondelete='CASCADE'), nullable=False, index=True)
    payment_method_id = Column(BigInteger, ForeignKey('payment_method.id'), nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    installments = Column(BigInteger, nullable=False, default=1)
    fee = Column(Numeric(10, 2), nullable=False, default=0)
    net_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sale = relationship('Sale', back_populates='payments')
    payment_method = relationship('PaymentMethod')

    @property
    def payment_method_type(self):
        return self.payment_method.type if self.payment_method else None

    def __repr__(self):
        return f"<SalePayment(id={self.id}, sale_id={self.sale_id}, amount={self.amount}, fee={self.fee})>"
