"""
Fee calculator for payment processing (card machine fee schedule).

Pure functions: they take the payment method type and the active
``CardFeeSchedule`` and return cent-rounded fees.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from app.exceptions import InvalidInstallmentsError
from app.models import CardFeeSchedule, PaymentMethodType, MIN_INSTALLMENTS, MAX_INSTALLMENTS
from app.utils.money import ZERO, percent_of, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentCharge:
    """A payment as it enters fee computation."""
    payment_method_id: int
    method_type: PaymentMethodType
    amount: Decimal
    installments: int = 1


@dataclass(frozen=True)
class PaymentFee:
    charge: PaymentCharge
    fee: Decimal
    net_amount: Decimal


@dataclass(frozen=True)
class PaymentFees:
    payments: List[PaymentFee]
    total_fees: Decimal
    total_paid: Decimal


def validate_installments(method_type: PaymentMethodType, installments: int) -> None:
    """Only credit payments may be split, and only within 1..12."""
    if installments is None or installments < MIN_INSTALLMENTS:
        raise InvalidInstallmentsError('O número de parcelas deve ser no mínimo 1')
    if method_type != PaymentMethodType.CREDIT and installments != 1:
        raise InvalidInstallmentsError(
            f'Pagamentos em {method_type.value} não podem ser parcelados'
        )
    if installments > MAX_INSTALLMENTS:
        raise InvalidInstallmentsError(
            f'Parcelamento máximo é {MAX_INSTALLMENTS}x (solicitado {installments}x)'
        )


def fee_percentage(method_type: PaymentMethodType, installments: int,
                   schedule: Optional[CardFeeSchedule]) -> Decimal:
    """Percentage charged for a payment, ZERO when nothing applies."""
    validate_installments(method_type, installments)

    if method_type in (PaymentMethodType.CASH, PaymentMethodType.TRANSFER):
        return ZERO

    if schedule is None:
        if method_type.uses_card_machine:
            logger.warning(
                f"[FEE] No active card fee schedule; {method_type.value} payment charged with zero fee"
            )
        return ZERO

    if method_type == PaymentMethodType.PIX:
        return Decimal(schedule.pix_fee or 0)
    if method_type == PaymentMethodType.DEBIT:
        return Decimal(schedule.debit_fee or 0)

    # CREDIT
    if installments == 1:
        return Decimal(schedule.credit_fee or 0)

    percentage = schedule.installment_fee(installments)
    if percentage is None:
        raise InvalidInstallmentsError(
            f'Parcelamento em {installments}x não está configurado na maquininha "{schedule.name}"'
        )
    return percentage


def compute_fee(amount: Decimal, method_type: PaymentMethodType, installments: int,
                schedule: Optional[CardFeeSchedule]) -> Decimal:
    """Fee kept by the processor for one payment."""
    percentage = fee_percentage(method_type, installments, schedule)
    if not percentage:
        return ZERO
    return percent_of(to_money(amount), percentage)


def compute_payment_fees(charges: Sequence[PaymentCharge],
                         schedule: Optional[CardFeeSchedule]) -> PaymentFees:
    """Fees and net amounts for every payment of a sale."""
    results = []
    for charge in charges:
        amount = to_money(charge.amount)
        fee = compute_fee(amount, charge.method_type, charge.installments, schedule)
        results.append(PaymentFee(charge=charge, fee=fee, net_amount=amount - fee))

    return PaymentFees(
        payments=results,
        total_fees=sum((r.fee for r in results), ZERO),
        total_paid=sum((to_money(r.charge.amount) for r in results), ZERO),
    )
