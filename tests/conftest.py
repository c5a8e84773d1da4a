import fnmatch
import pytest
from decimal import Decimal
import uuid

from app import create_app
from app.models import (
    AppUser, CardFeeSchedule, Customer, PaymentMethod, PaymentMethodType, Product
)
from app.services.sales_service import SaleTransactionEngine
from config import TestConfig


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application instance with a fresh SQLite file database."""
    config = type('IsolatedTestConfig', (TestConfig,), {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'smartloja_test.db'}",
    })
    app = create_app(config)
    database = app.extensions['database']
    database.create_all()
    yield app
    database.drop_all()
    database.dispose()


@pytest.fixture(scope='function')
def database(app):
    return app.extensions['database']


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(database):
    """Create database session for testing."""
    session = database.new_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def engine(app):
    """Checkout engine wired like the application wires it."""
    with app.app_context():
        yield SaleTransactionEngine.from_app(app)


@pytest.fixture(scope='function')
def operator(session):
    """Create an active POS operator."""
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(email=f'caixa-{suffix}@test.com', full_name='Caixa Um', active=True)
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def product(session):
    """Product priced at 100.00 with cost 60.00 and 10 units in stock."""
    product = Product(
        name='Camiseta Básica',
        sku='CAM-001',
        barcode='7891234567890',
        cost_price=Decimal('60.00'),
        sale_price=Decimal('100.00'),
        stock=10,
        min_stock=2,
        active=True,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def last_unit_product(session):
    """Product with a single unit left."""
    product = Product(
        name='Tênis Edição Limitada',
        sku='TEN-999',
        cost_price=Decimal('150.00'),
        sale_price=Decimal('300.00'),
        stock=1,
        min_stock=1,
        active=True,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def payment_methods(session):
    """One active payment method per type, keyed by type."""
    methods = {}
    for method_type in PaymentMethodType:
        method = PaymentMethod(name=method_type.value.title(), type=method_type, active=True)
        session.add(method)
        methods[method_type] = method
    session.commit()
    return methods


@pytest.fixture(scope='function')
def fee_schedule(session, payment_methods):
    """Active card fee schedule (credit 2.99%, debit 1.49%, 3x 5.99%)."""
    schedule = CardFeeSchedule(
        name='Maquininha Teste',
        brand='Stone',
        payment_method_id=payment_methods[PaymentMethodType.CREDIT].id,
        credit_fee=Decimal('2.99'),
        debit_fee=Decimal('1.49'),
        pix_fee=Decimal('0.99'),
        installment_fees={'2': 4.99, '3': 5.99, '6': 8.99},
        active=True,
    )
    session.add(schedule)
    session.commit()
    return schedule


@pytest.fixture(scope='function')
def customer(session):
    """Active customer without purchases."""
    customer = Customer(name='Maria Silva', phone='11999990000', active=True,
                        total_purchases=Decimal('0.00'))
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def logged_client(client, operator):
    """Test client with the operator id in the session cookie."""
    with client.session_transaction() as sess:
        sess['user_id'] = operator.id
    return client


@pytest.fixture(scope='function')
def checkout_payload():
    """Build a camelCase checkout payload."""
    def build(items, payments, customer_id=None, discount_type=None, discount_value=None):
        payload = {'items': items, 'payments': payments}
        if customer_id is not None:
            payload['customerId'] = customer_id
        if discount_type is not None:
            payload['discountType'] = discount_type
        if discount_value is not None:
            payload['discountValue'] = discount_value
        return payload
    return build


class FakeRedis:
    """In-memory stand-in for the handful of redis calls the cache service makes."""

    def __init__(self):
        self.data = {}

    def ping(self):
        return True

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value

    def scan(self, cursor, match='*', count=100):
        return 0, [key for key in self.data if fnmatch.fnmatch(key, match)]

    def pipeline(self):
        return self

    def delete(self, key):
        self.data.pop(key, None)

    def execute(self):
        return []


@pytest.fixture(scope='function')
def fake_redis():
    return FakeRedis()


@pytest.fixture(scope='function')
def redis_cache(app, fake_redis):
    """The app cache switched on against an in-memory client."""
    cache = app.extensions['cache']
    cache._enabled = True
    cache.client = fake_redis
    return cache
