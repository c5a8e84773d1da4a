"""Financial Entry model."""
from sqlalchemy import Column, BigInteger, Numeric, DateTime, String, Text, Enum, ForeignKey
from sqlalchemy.sql import func
from app.database import Base, BigIntId
import enum


class EntryType(enum.Enum):
    """Ledger entry type enum."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class EntryStatus(enum.Enum):
    """Ledger entry status enum."""
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class FinancialEntry(Base):
    """Financial Entry (lançamento financeiro)."""

    __tablename__ = 'financial_entry'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    type = Column(Enum(EntryType, name='entry_type'), nullable=False)
    status = Column(Enum(EntryStatus, name='entry_status'), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    paid_amount = Column(Numeric(10, 2), nullable=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id'), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<FinancialEntry(id={self.id}, type={self.type.value}, amount={self.amount})>"
