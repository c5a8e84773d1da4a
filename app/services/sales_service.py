"""
Sales service with transactional logic.

Turns a validated cart into a COMPLETED sale: sale, items, payments, stock
movements, the income ledger entry and the customer aggregate are written
in one transaction, or nothing is.

    prepare()  read-only: catalog checks, pricing, fees, payment totals
    commit()   one unit of work: stock decrement (conditional UPDATE),
               sale rows, ledger entry, customer aggregate

The stock check in prepare() is advisory. The conditional decrement inside
commit() is what prevents overselling when terminals race for the same
units; the loser rolls back completely.
"""
import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.exceptions import (
    InsufficientStockError, PaymentMismatchError, ProductInactiveError,
    ProductNotFoundError, SmartLojaError, StorageError, UnauthorizedError
)
from app.models import (
    AppUser, Product, Sale, SaleItem, SalePayment, SaleStatus
)
from app.schemas import CheckoutRequest
from app.services.catalog_service import (
    get_active_fee_schedule, get_customer, get_payment_method, get_product_for_sale
)
from app.services.customer_service import register_purchase
from app.services.fee_service import PaymentCharge, PaymentFees, compute_payment_fees
from app.services.ledger_service import post_sale_income
from app.services.pricing_service import CartLine, CartPricing, price_cart
from app.services.stock_service import decrement_for_sale
from app.signals import notify_sale_completed
from app.utils.money import to_money

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_TOLERANCE = Decimal('0.01')


@dataclass(frozen=True)
class PreparedSale:
    """Everything checkout computed before touching the database."""
    operator_id: int
    customer_id: Optional[int]
    pricing: CartPricing
    fees: PaymentFees
    fee_schedule_id: Optional[int]

    @property
    def net_profit(self) -> Decimal:
        return self.pricing.gross_profit - self.fees.total_fees


def generate_sale_code(prefix: str = 'V', now: Optional[datetime] = None) -> str:
    """Human readable sale code, e.g. ``V261019A1B2C3``."""
    now = now or datetime.now(timezone.utc)
    return f"{prefix}{now:%y%m%d}{secrets.token_hex(3).upper()}"


class SaleTransactionEngine:
    """
    Checkout orchestration.

    Args:
        session_factory: callable returning a new SQLAlchemy ``Session``
            (``Database.new_session`` in the app, a test factory in tests)
        payment_tolerance: accepted |sum(payments) - total|
        code_prefix: prefix of generated sale codes
        clock: returns the timestamp recorded on the sale and its side effects
    """

    def __init__(self, session_factory: Callable[[], Session],
                 payment_tolerance: Decimal = DEFAULT_PAYMENT_TOLERANCE,
                 code_prefix: str = 'V',
                 clock: Optional[Callable[[], datetime]] = None):
        self.session_factory = session_factory
        self.payment_tolerance = Decimal(payment_tolerance)
        self.code_prefix = code_prefix
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_app(cls, app) -> 'SaleTransactionEngine':
        database = app.extensions['database']
        return cls(
            database.new_session,
            payment_tolerance=app.config.get('PAYMENT_TOLERANCE', DEFAULT_PAYMENT_TOLERANCE),
            code_prefix=app.config.get('SALE_CODE_PREFIX', 'V'),
        )

    # =====================================================
    # PUBLIC API
    # =====================================================

    def checkout(self, request: CheckoutRequest, operator_id: int) -> Sale:
        """
        Confirm a sale with full transactional processing.

        Returns the persisted sale with ``items`` and ``payments`` loaded.
        Raises a ``SmartLojaError`` subclass on any failure; nothing is
        persisted in that case and nothing is retried.
        """
        prepared = self.prepare(request, operator_id)
        sale = self.commit(prepared)
        notify_sale_completed(self, sale)
        return sale

    def prepare(self, request: CheckoutRequest, operator_id: int) -> PreparedSale:
        """Steps 1-4: validate against the catalog, price, compute fees, check payments."""
        session = self.session_factory()
        try:
            operator = session.get(AppUser, operator_id) if operator_id is not None else None
            if operator is None or not operator.active:
                raise UnauthorizedError('Operador não identificado')

            if request.customer_id is not None:
                get_customer(session, request.customer_id)

            lines = self._validate_items(session, request)
            pricing = price_cart(lines, request.discount_type, request.discount_value)

            schedule = get_active_fee_schedule(session)
            charges = self._build_charges(session, request)
            fees = compute_payment_fees(charges, schedule)
        finally:
            session.close()

        self._check_payment_total(fees.total_paid, pricing.total)

        return PreparedSale(
            operator_id=operator_id,
            customer_id=request.customer_id,
            pricing=pricing,
            fees=fees,
            fee_schedule_id=schedule.id if schedule else None,
        )

    def commit(self, prepared: PreparedSale) -> Sale:
        """Steps 5-6: write everything in one transaction, roll back on any failure."""
        session = self.session_factory()
        try:
            try:
                sale = self._write_sale(session, prepared)
                session.commit()
            except SmartLojaError as e:
                session.rollback()
                logger.info(f"[SALE] Checkout rolled back: {e.kind} - {e.message}")
                raise
            except SQLAlchemyError as e:
                session.rollback()
                logger.exception(f"[SALE] Storage failure during checkout: {e}")
                raise StorageError(f'Erro ao registrar a venda: {e.__class__.__name__}') from e
            except Exception as e:
                session.rollback()
                logger.exception(f"[SALE] Unexpected failure during checkout: {e}")
                raise StorageError(f'Erro ao registrar a venda: {e}') from e

            # Already committed: reload failures carry the sale code
            try:
                persisted = get_sale(session, sale.id)
            except SQLAlchemyError as e:
                logger.exception(f"[SALE] {sale.code} committed but could not be reloaded: {e}")
                raise StorageError(
                    f'Venda {sale.code} registrada, mas não foi possível recarregá-la',
                    payload={'sale_id': sale.id, 'code': sale.code},
                ) from e
        finally:
            session.close()

        logger.info(
            f"[SALE] {persisted.code} completed: total={persisted.total} "
            f"fees={persisted.total_fees} net_profit={persisted.net_profit}"
        )
        return persisted

    # =====================================================
    # PRIVATE HELPERS
    # =====================================================

    def _validate_items(self, session: Session, request: CheckoutRequest) -> List[CartLine]:
        """Build cart lines with the catalog snapshot; fail fast on stock."""
        requested: Dict[int, int] = OrderedDict()
        products: Dict[int, Product] = {}
        lines = []

        for item in request.items:
            product = products.get(item.product_id)
            if product is None:
                product = get_product_for_sale(session, item.product_id)
                if not product.active:
                    raise ProductInactiveError(product.id, product.name)
                products[product.id] = product

            requested[product.id] = requested.get(product.id, 0) + item.quantity

            unit_price = item.unit_price if item.unit_price is not None else product.sale_price
            lines.append(CartLine(
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=to_money(unit_price),
                cost_price=to_money(product.cost_price or 0),
                discount=to_money(item.discount or 0),
            ))

        # Advisory check, the authoritative one happens in commit()
        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.stock < quantity:
                raise InsufficientStockError(product.id, product.name, quantity, product.stock)

        return lines

    def _build_charges(self, session: Session, request: CheckoutRequest) -> List[PaymentCharge]:
        charges = []
        for payment in request.payments:
            method = get_payment_method(session, payment.payment_method_id)
            charges.append(PaymentCharge(
                payment_method_id=method.id,
                method_type=method.type,
                amount=to_money(payment.amount),
                installments=payment.installments,
            ))
        return charges

    def _check_payment_total(self, payments_total: Decimal, sale_total: Decimal) -> None:
        if abs(payments_total - sale_total) > self.payment_tolerance:
            raise PaymentMismatchError(payments_total, sale_total)

    def _write_sale(self, session: Session, prepared: PreparedSale) -> Sale:
        now = self.clock()
        pricing = prepared.pricing

        sale = Sale(
            code=generate_sale_code(self.code_prefix, now),
            customer_id=prepared.customer_id,
            user_id=prepared.operator_id,
            status=SaleStatus.COMPLETED,
            subtotal=pricing.subtotal,
            discount_type=pricing.discount_type,
            discount_value=pricing.discount_value,
            discount_amount=pricing.discount_amount,
            total=pricing.total,
            total_cost=pricing.total_cost,
            profit=pricing.gross_profit,
            total_fees=prepared.fees.total_fees,
            net_profit=prepared.net_profit,
            created_at=now,
        )
        session.add(sale)
        session.flush()

        # Row locks taken in product id order so concurrent carts cannot deadlock
        for priced in sorted(pricing.lines, key=lambda p: p.line.product_id):
            line = priced.line
            product = session.get(Product, line.product_id)
            if product is None:
                raise ProductNotFoundError(line.product_id)
            decrement_for_sale(session, product, line.quantity, prepared.operator_id, sale)

        for priced in pricing.lines:
            line = priced.line
            session.add(SaleItem(
                sale_id=sale.id,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                cost_price=line.cost_price,
                discount=line.discount,
                total=priced.total,
            ))

        for payment in prepared.fees.payments:
            session.add(SalePayment(
                sale_id=sale.id,
                payment_method_id=payment.charge.payment_method_id,
                amount=to_money(payment.charge.amount),
                installments=payment.charge.installments,
                fee=payment.fee,
                net_amount=payment.net_amount,
            ))

        post_sale_income(session, sale, now)

        if prepared.customer_id is not None:
            register_purchase(session, prepared.customer_id, pricing.total, now)

        session.flush()
        return sale


def get_sale(session: Session, sale_id: int) -> Optional[Sale]:
    """Sale with items and payments (and their payment methods) loaded."""
    return session.query(Sale).options(
        selectinload(Sale.items),
        selectinload(Sale.payments).selectinload(SalePayment.payment_method),
    ).filter(Sale.id == sale_id).populate_existing().first()


def list_sales(session: Session, start: Optional[datetime] = None, end: Optional[datetime] = None,
               status: Optional[SaleStatus] = None, limit: int = 100) -> List[Sale]:
    """Most recent sales, newest first, optionally filtered by date range and status."""
    query = session.query(Sale).options(
        selectinload(Sale.items),
        selectinload(Sale.payments).selectinload(SalePayment.payment_method),
    )
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at <= end)
    if status is not None:
        query = query.filter(Sale.status == status)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
