"""
Flask CLI commands.
"""

from sqlalchemy import func

from app.models import AppUser, CardFeeSchedule, PaymentMethod, Product, StockMovement, StockMovementType


class TestSetupCommands:
    """init-db, create-operator, seed-payment-methods"""

    def test_init_db_is_idempotent(self, app):
        result = app.test_cli_runner().invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Tabelas criadas' in result.output

    def test_create_operator(self, app, session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['create-operator', '--email', 'caixa@loja.com', '--name', 'Caixa'])
        assert result.exit_code == 0
        assert 'Operador criado' in result.output

        result = runner.invoke(args=['create-operator', '--email', 'caixa@loja.com'])
        assert 'Já existe' in result.output

        users = session.query(AppUser).filter(AppUser.email == 'caixa@loja.com').all()
        assert len(users) == 1

    def test_seed_payment_methods_once(self, app, session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['seed-payment-methods'])
        assert result.exit_code == 0
        assert 'Formas de pagamento criadas: 5' in result.output

        result = runner.invoke(args=['seed-payment-methods'])
        assert 'Formas de pagamento criadas: 0' in result.output

        assert session.query(func.count(PaymentMethod.id)).scalar() == 5
        schedules = session.query(CardFeeSchedule).all()
        assert len(schedules) == 1
        assert schedules[0].installment_fee(3) is not None


class TestStockCommands:
    """stock-entry, stock-adjust, low-stock"""

    def test_stock_entry_by_sku(self, app, session, product):
        result = app.test_cli_runner().invoke(args=['stock-entry', '--code', 'CAM-001', '--qty', '5'])

        assert result.exit_code == 0
        assert '10 -> 15' in result.output
        assert session.get(Product, product.id, populate_existing=True).stock == 15
        movement = session.query(StockMovement).one()
        assert movement.type == StockMovementType.ENTRY

    def test_stock_entry_unknown_code(self, app):
        result = app.test_cli_runner().invoke(args=['stock-entry', '--code', 'XXX', '--qty', '5'])
        assert result.exit_code != 0
        assert 'Produto não encontrado' in result.output

    def test_stock_entry_rejects_zero(self, app, session, product):
        result = app.test_cli_runner().invoke(args=['stock-entry', '--code', 'CAM-001', '--qty', '0'])
        assert result.exit_code != 0
        assert session.get(Product, product.id, populate_existing=True).stock == 10

    def test_stock_adjust_by_barcode(self, app, session, product):
        result = app.test_cli_runner().invoke(
            args=['stock-adjust', '--code', '7891234567890', '--counted', '4']
        )

        assert result.exit_code == 0
        assert '10 -> 4 (ADJUSTMENT)' in result.output
        assert session.get(Product, product.id, populate_existing=True).stock == 4

    def test_low_stock(self, app, product, last_unit_product):
        result = app.test_cli_runner().invoke(args=['low-stock'])

        assert result.exit_code == 0
        assert 'TEN-999' in result.output
        assert 'CAM-001' not in result.output
