"""
Request/response schemas for the checkout boundary.

Payload keys are camelCase (``productId``, ``paymentMethodId``...), the
Python attributes snake_case.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.exceptions import ValidationError
from app.models import DiscountType, PaymentMethodType, SaleStatus


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutItem(_Schema):
    product_id: int
    quantity: int = Field(gt=0)
    # Defaults to the catalog sale price when omitted
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    # Accepted for compatibility; the catalog cost snapshot is what gets stored
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    discount: Decimal = Field(default=Decimal('0'), ge=0)


class CheckoutPayment(_Schema):
    payment_method_id: int
    amount: Decimal = Field(gt=0)
    installments: int = Field(default=1, ge=1)


class CheckoutRequest(_Schema):
    customer_id: Optional[int] = None
    items: List[CheckoutItem] = Field(min_length=1)
    discount_type: Optional[DiscountType] = None
    # Percent or currency, both at cent precision
    discount_value: Optional[Decimal] = Field(default=None, decimal_places=2)
    payments: List[CheckoutPayment] = Field(min_length=1)


def _describe(error: Dict[str, Any]) -> str:
    location = '.'.join(str(part) for part in error.get('loc', ()))
    return f"{location}: {error.get('msg')}" if location else error.get('msg', '')


def parse_checkout_request(data: Any) -> CheckoutRequest:
    """Validate a raw payload, raising the application ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError('Payload de venda inválido')
    try:
        return CheckoutRequest.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors()
        raise ValidationError(
            'Dados da venda inválidos: ' + '; '.join(_describe(err) for err in errors),
            payload={'errors': [_describe(err) for err in errors]},
        )


class SaleItemOut(_Schema):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    cost_price: Decimal
    discount: Decimal
    total: Decimal


class SalePaymentOut(_Schema):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payment_method_id: int
    payment_method_type: Optional[PaymentMethodType] = None
    amount: Decimal
    installments: int
    fee: Decimal
    net_amount: Decimal


class SaleOut(_Schema):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    customer_id: Optional[int] = None
    user_id: int
    status: SaleStatus
    subtotal: Decimal
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    discount_amount: Decimal
    total: Decimal
    total_cost: Decimal
    profit: Decimal
    total_fees: Decimal
    net_profit: Decimal
    created_at: Optional[datetime] = None
    items: List[SaleItemOut] = Field(default_factory=list)
    payments: List[SalePaymentOut] = Field(default_factory=list)


def serialize_sale(sale) -> Dict[str, Any]:
    """Sale with items and payments as a JSON-ready dict (receipt payload)."""
    return SaleOut.model_validate(sale).model_dump(mode='json', by_alias=True)
