"""
Unit tests for SQLAlchemy models.
"""

import pytest
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from app.models import CardFeeSchedule, PaymentMethodType, Product


class TestProductModel:
    """Tests for Product model."""

    def test_create_product(self, session):
        product = Product(name='Boné', sku='BON-01', sale_price=Decimal('49.90'), stock=3, min_stock=5)
        session.add(product)
        session.commit()

        assert product.id is not None
        assert product.active is True
        assert product.is_low_stock is True

    def test_sku_unique(self, session, product):
        session.add(Product(name='Duplicada', sku=product.sku, sale_price=Decimal('1.00')))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_stock_cannot_be_negative(self, session):
        session.add(Product(name='Negativo', sku='NEG-01', sale_price=Decimal('1.00'), stock=-1))
        with pytest.raises(IntegrityError):
            session.commit()


class TestCardFeeScheduleModel:
    """Tests for CardFeeSchedule model."""

    def test_installment_fee_lookup(self, fee_schedule, session):
        schedule = session.get(CardFeeSchedule, fee_schedule.id, populate_existing=True)

        assert schedule.installment_fee(3) == Decimal('5.99')
        assert schedule.installment_fee(4) is None


class TestPaymentMethodType:
    """Tests for PaymentMethodType enum."""

    def test_card_machine_types(self):
        assert PaymentMethodType.CREDIT.uses_card_machine
        assert PaymentMethodType.DEBIT.uses_card_machine
        assert not PaymentMethodType.PIX.uses_card_machine
        assert not PaymentMethodType.CASH.uses_card_machine
