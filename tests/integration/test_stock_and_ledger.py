"""
Stock ledger operations and the daily financial summary.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from app.exceptions import ValidationError
from app.models import PaymentMethodType, Product, StockMovementType
from app.schemas import parse_checkout_request
from app.services.catalog_service import find_product_by_code, list_low_stock_products
from app.services.ledger_service import get_income_summary
from app.services.stock_service import adjust_stock, list_movements, receive_stock


class TestStockLedger:
    """Every stock change leaves a movement behind."""

    def test_receive_stock(self, session, operator, product):
        movement = receive_stock(session, product, 5, operator.id, 'Compra fornecedor')
        session.commit()

        assert movement.type == StockMovementType.ENTRY
        assert movement.quantity == 5
        assert (movement.previous_stock, movement.new_stock) == (10, 15)
        assert session.get(Product, product.id).stock == 15

    def test_receive_non_positive_rejected(self, session, product):
        with pytest.raises(ValidationError):
            receive_stock(session, product, 0, None)

    def test_adjust_down_records_adjustment(self, session, product):
        movement = adjust_stock(session, product, 7, None, 'Inventário')
        session.commit()

        assert movement.type == StockMovementType.ADJUSTMENT
        assert movement.quantity == 3
        assert (movement.previous_stock, movement.new_stock) == (10, 7)

    def test_adjust_up_records_entry(self, session, product):
        movement = adjust_stock(session, product, 12, None)
        assert movement.type == StockMovementType.ENTRY
        assert movement.quantity == 2

    def test_adjust_to_same_value_is_noop(self, session, product):
        assert adjust_stock(session, product, 10, None) is None
        assert list_movements(session, product.id) == []

    def test_adjust_negative_rejected(self, session, product):
        with pytest.raises(ValidationError):
            adjust_stock(session, product, -1, None)

    def test_list_movements_newest_first(self, session, product):
        receive_stock(session, product, 1, None)
        adjust_stock(session, product, 5, None)
        session.commit()

        movements = list_movements(session, product.id)
        assert [m.type for m in movements] == [StockMovementType.ADJUSTMENT, StockMovementType.ENTRY]
        assert movements[0].new_stock == 5


class TestCatalogLookups:
    """Catalog helpers used by the CLI."""

    def test_find_by_sku_or_barcode(self, session, product):
        assert find_product_by_code(session, 'CAM-001').id == product.id
        assert find_product_by_code(session, ' 7891234567890 ').id == product.id
        assert find_product_by_code(session, 'NOPE') is None
        assert find_product_by_code(session, '') is None

    def test_low_stock(self, session, product, last_unit_product):
        assert [p.id for p in list_low_stock_products(session)] == [last_unit_product.id]


class TestIncomeSummary:
    """Daily totals of completed sales."""

    @pytest.fixture
    def completed_sale(self, engine, operator, product, payment_methods, fee_schedule, checkout_payload):
        request = parse_checkout_request(checkout_payload(
            items=[{'productId': product.id, 'quantity': 2}],
            payments=[{
                'paymentMethodId': payment_methods[PaymentMethodType.CREDIT].id,
                'amount': '180.00',
                'installments': 3,
            }],
            discount_type='PERCENT',
            discount_value=10,
        ))
        return engine.checkout(request, operator.id)

    def test_summary_of_the_day(self, app, session, completed_sale):
        today = datetime.now(timezone.utc).date()
        with app.app_context():
            summary = get_income_summary(session, today)

        assert summary['date'] == today.isoformat()
        assert summary['sales_count'] == 1
        assert summary['revenue'] == Decimal('180.00')
        assert summary['total_cost'] == Decimal('120.00')
        assert summary['profit'] == Decimal('60.00')
        assert summary['total_fees'] == Decimal('10.78')
        assert summary['net_profit'] == Decimal('49.22')
        assert summary['income_received'] == Decimal('180.00')

    def test_summary_cache_dropped_when_a_sale_completes(self, app, session, redis_cache, engine,
                                                         operator, product, payment_methods,
                                                         checkout_payload):
        today = datetime.now(timezone.utc).date()
        with app.app_context():
            assert get_income_summary(session, today)['sales_count'] == 0
        assert redis_cache.client.data

        engine.checkout(parse_checkout_request(checkout_payload(
            items=[{'productId': product.id, 'quantity': 1}],
            payments=[{'paymentMethodId': payment_methods[PaymentMethodType.CASH].id, 'amount': '100.00'}],
        )), operator.id)

        assert redis_cache.client.data == {}
        with app.app_context():
            assert get_income_summary(session, today)['sales_count'] == 1
