"""
Pricing engine - pure cart arithmetic (no database access).

Order of application:
    1. line total = unit_price * quantity - line discount
    2. subtotal = sum(line totals)
    3. order discount (flat VALUE or PERCENT of subtotal)
    4. total = subtotal - discount amount
    5. gross profit = total - sum(cost_price * quantity)
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from app.exceptions import InvalidDiscountError, ValidationError
from app.models import DiscountType
from app.utils.money import HUNDRED, ZERO, money_br, percent_of, to_money


@dataclass(frozen=True)
class CartLine:
    """One cart line with the price/cost snapshot taken at validation time."""
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    cost_price: Decimal
    discount: Decimal = ZERO


@dataclass(frozen=True)
class PricedLine:
    line: CartLine
    gross: Decimal
    total: Decimal
    cost: Decimal


@dataclass(frozen=True)
class CartPricing:
    subtotal: Decimal
    discount_type: Optional[DiscountType]
    discount_value: Optional[Decimal]
    discount_amount: Decimal
    total: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    lines: List[PricedLine] = field(default_factory=list)


def price_line(line: CartLine) -> PricedLine:
    """Price a single line, rejecting bad quantities and oversized discounts."""
    if line.quantity is None or line.quantity <= 0:
        raise ValidationError(
            f'A quantidade de "{line.product_name}" deve ser maior que zero',
            payload={'product_id': line.product_id},
        )

    discount = to_money(line.discount or ZERO)
    gross = to_money(to_money(line.unit_price) * line.quantity)
    if discount < 0:
        raise InvalidDiscountError(
            f'Desconto negativo no item "{line.product_name}"',
            payload={'product_id': line.product_id},
        )
    if discount > gross:
        raise InvalidDiscountError(
            f'O desconto de R$ {money_br(discount)} excede o valor do item '
            f'"{line.product_name}" (R$ {money_br(gross)})',
            payload={'product_id': line.product_id},
        )

    return PricedLine(
        line=line,
        gross=gross,
        total=gross - discount,
        cost=to_money(to_money(line.cost_price) * line.quantity),
    )


def resolve_discount_type(discount_type: Optional[DiscountType],
                          discount_value: Optional[Decimal]) -> Optional[DiscountType]:
    """A discount value sent without a type is a flat (VALUE) discount."""
    if discount_value is None:
        return None
    return discount_type or DiscountType.VALUE


def compute_discount_amount(subtotal: Decimal, discount_type: Optional[DiscountType],
                            discount_value: Optional[Decimal]) -> Decimal:
    """Order-level discount in currency. Never more than the subtotal."""
    discount_type = resolve_discount_type(discount_type, discount_value)
    if discount_type is None:
        return ZERO

    # Quantized exactly like the stored discount_value
    value = to_money(discount_value)
    if value < 0:
        raise InvalidDiscountError('O desconto não pode ser negativo')

    if discount_type == DiscountType.PERCENT:
        if value > HUNDRED:
            raise InvalidDiscountError('O desconto percentual deve estar entre 0 e 100')
        amount = percent_of(subtotal, value)
    else:
        amount = value

    if amount > subtotal:
        raise InvalidDiscountError(
            f'O desconto de R$ {money_br(amount)} excede o subtotal de R$ {money_br(subtotal)}'
        )
    return amount


def price_cart(lines: Sequence[CartLine], discount_type: Optional[DiscountType] = None,
               discount_value: Optional[Decimal] = None) -> CartPricing:
    """Compute every monetary field of a sale except fees."""
    if not lines:
        raise ValidationError('O carrinho está vazio')

    priced = [price_line(line) for line in lines]
    subtotal = sum((p.total for p in priced), ZERO)
    total_cost = sum((p.cost for p in priced), ZERO)

    discount_type = resolve_discount_type(discount_type, discount_value)
    discount_amount = compute_discount_amount(subtotal, discount_type, discount_value)
    total = subtotal - discount_amount

    return CartPricing(
        subtotal=subtotal,
        discount_type=discount_type,
        discount_value=to_money(discount_value) if discount_type else None,
        discount_amount=discount_amount,
        total=total,
        total_cost=total_cost,
        gross_profit=total - total_cost,
        lines=priced,
    )
