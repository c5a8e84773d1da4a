"""Customer model."""
from sqlalchemy import Column, String, Numeric, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class Customer(Base):
    """Customer (cliente)."""

    __tablename__ = 'customer'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True, server_default='true')

    # Aggregates, only updated by app.services.customer_service.register_purchase
    total_purchases = Column(Numeric(12, 2), nullable=False, default=0, server_default='0.00')
    last_purchase = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='customer')

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', total_purchases={self.total_purchases})>"
