"""
Flask CLI commands for store setup and stock maintenance.

Commands:
- flask init-db: Create all tables
- flask create-operator: Register a POS operator
- flask seed-payment-methods: Default payment methods and card fee schedule
- flask stock-entry: Receive units of a product (ENTRY movement)
- flask stock-adjust: Set a product's counted stock (ENTRY/ADJUSTMENT movement)
- flask low-stock: List products at or below minimum stock
"""

import click
from decimal import Decimal
from flask import current_app

from app.exceptions import SmartLojaError
from app.models import AppUser, CardFeeSchedule, PaymentMethod, PaymentMethodType
from app.services.catalog_service import find_product_by_code, list_low_stock_products
from app.services.stock_service import adjust_stock, receive_stock

DEFAULT_PAYMENT_METHODS = [
    ('Dinheiro', PaymentMethodType.CASH),
    ('PIX', PaymentMethodType.PIX),
    ('Cartão de Crédito', PaymentMethodType.CREDIT),
    ('Cartão de Débito', PaymentMethodType.DEBIT),
    ('Transferência', PaymentMethodType.TRANSFER),
]

DEFAULT_INSTALLMENT_FEES = {
    '2': 4.99, '3': 5.99, '4': 6.99, '5': 7.99, '6': 8.99, '7': 9.99,
    '8': 10.99, '9': 11.99, '10': 12.99, '11': 13.99, '12': 14.99,
}


def _database():
    return current_app.extensions['database']


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        _database().create_all()
        click.echo(click.style('✅ Tabelas criadas', fg='green'))

    @app.cli.command('create-operator')
    @click.option('--email', prompt=True, help='Operator email address')
    @click.option('--name', default='', help='Operator full name')
    def create_operator(email, name):
        """Register a POS operator."""
        with _database().session_scope() as session:
            existing = session.query(AppUser).filter(AppUser.email == email).first()
            if existing:
                click.echo(click.style(f'❌ Já existe um operador com o email: {email}', fg='red'))
                return
            user = AppUser(email=email, full_name=name or None, active=True)
            session.add(user)
            session.flush()
            click.echo(click.style(f'✅ Operador criado (ID: {user.id})', fg='green'))

    @app.cli.command('seed-payment-methods')
    @click.option('--credit-fee', default='2.99', help='Credit (1x) fee percentage')
    @click.option('--debit-fee', default='1.49', help='Debit fee percentage')
    @click.option('--pix-fee', default='0', help='PIX fee percentage')
    def seed_payment_methods(credit_fee, debit_fee, pix_fee):
        """Create default payment methods and the default card fee schedule."""
        with _database().session_scope() as session:
            created = 0
            methods = {}
            for name, method_type in DEFAULT_PAYMENT_METHODS:
                method = session.query(PaymentMethod).filter(PaymentMethod.type == method_type).first()
                if method is None:
                    method = PaymentMethod(name=name, type=method_type, active=True)
                    session.add(method)
                    created += 1
                methods[method_type] = method
            session.flush()
            click.echo(f'Formas de pagamento criadas: {created}')

            has_schedule = session.query(CardFeeSchedule).filter(CardFeeSchedule.active.is_(True)).first()
            if has_schedule is None:
                session.add(CardFeeSchedule(
                    name='Maquininha Principal',
                    brand='Stone',
                    payment_method_id=methods[PaymentMethodType.CREDIT].id,
                    credit_fee=Decimal(credit_fee),
                    debit_fee=Decimal(debit_fee),
                    pix_fee=Decimal(pix_fee),
                    installment_fees=dict(DEFAULT_INSTALLMENT_FEES),
                    active=True,
                ))
                click.echo('Maquininha criada')

    @app.cli.command('stock-entry')
    @click.option('--code', required=True, help='Product SKU or barcode')
    @click.option('--qty', required=True, type=int, help='Units received')
    @click.option('--reason', default='Entrada de estoque', help='Movement reason')
    def stock_entry(code, qty, reason):
        """Receive units of a product."""
        try:
            with _database().session_scope() as session:
                product = find_product_by_code(session, code)
                if product is None:
                    raise click.ClickException(f'Produto não encontrado: {code}')
                movement = receive_stock(session, product, qty, None, reason)
                click.echo(
                    f'{product.name}: {movement.previous_stock} -> {movement.new_stock}'
                )
        except SmartLojaError as e:
            raise click.ClickException(e.message)

    @app.cli.command('stock-adjust')
    @click.option('--code', required=True, help='Product SKU or barcode')
    @click.option('--counted', required=True, type=int, help='Counted stock')
    @click.option('--reason', default='Ajuste de inventário', help='Movement reason')
    def stock_adjust(code, counted, reason):
        """Set a product's stock to the counted value."""
        try:
            with _database().session_scope() as session:
                product = find_product_by_code(session, code)
                if product is None:
                    raise click.ClickException(f'Produto não encontrado: {code}')
                movement = adjust_stock(session, product, counted, None, reason)
                if movement is None:
                    click.echo(f'{product.name}: estoque já confere ({counted})')
                else:
                    click.echo(
                        f'{product.name}: {movement.previous_stock} -> {movement.new_stock} '
                        f'({movement.type.value})'
                    )
        except SmartLojaError as e:
            raise click.ClickException(e.message)

    @app.cli.command('low-stock')
    def low_stock():
        """List products at or below minimum stock."""
        with _database().session_scope() as session:
            products = list_low_stock_products(session)
            if not products:
                click.echo('Nenhum produto com estoque baixo')
                return
            for product in products:
                click.echo(f'{product.sku}\t{product.name}\t{product.stock}/{product.min_stock}')
