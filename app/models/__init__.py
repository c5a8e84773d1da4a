"""Models package - exports all SQLAlchemy models."""
from app.models.app_user import AppUser
from app.models.customer import Customer
from app.models.product import Product
from app.models.payment_method import PaymentMethod, PaymentMethodType
from app.models.card_fee_schedule import CardFeeSchedule, MIN_INSTALLMENTS, MAX_INSTALLMENTS
from app.models.sale import Sale, SaleStatus, DiscountType
from app.models.sale_item import SaleItem
from app.models.sale_payment import SalePayment
from app.models.stock_movement import StockMovement, StockMovementType
from app.models.financial_entry import FinancialEntry, EntryType, EntryStatus

__all__ = [
    'AppUser', 'Customer', 'Product',
    'PaymentMethod', 'PaymentMethodType',
    'CardFeeSchedule', 'MIN_INSTALLMENTS', 'MAX_INSTALLMENTS',
    'Sale', 'SaleStatus', 'DiscountType', 'SaleItem', 'SalePayment',
    'StockMovement', 'StockMovementType',
    'FinancialEntry', 'EntryType', 'EntryStatus',
]
