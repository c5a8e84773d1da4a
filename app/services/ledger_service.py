"""
Financial ledger: append-only income/expense entries.

A completed sale posts exactly one INCOME entry, already PAID.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional

from flask import current_app, has_app_context
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import (
    EntryStatus, EntryType, FinancialEntry, Sale, SaleStatus
)
from app.utils.money import ZERO, to_money

SUMMARY_CACHE_MODULE = 'balance'


def _income_category() -> str:
    if has_app_context():
        return current_app.config.get('SALE_INCOME_CATEGORY', 'Vendas')
    return 'Vendas'


def post_sale_income(session: Session, sale: Sale, when: Optional[datetime] = None) -> FinancialEntry:
    """Record the revenue of a completed sale. The caller owns the transaction."""
    when = when or datetime.now(timezone.utc)
    entry = FinancialEntry(
        type=EntryType.INCOME,
        status=EntryStatus.PAID,
        description=f'Venda #{sale.code}',
        amount=sale.total,
        category=_income_category(),
        due_date=when,
        paid_date=when,
        paid_amount=sale.total,
        sale_id=sale.id,
    )
    session.add(entry)
    return entry


def get_income_summary(session: Session, day: date) -> Dict[str, Any]:
    """
    Totals of COMPLETED sales created on ``day`` (UTC).

    Cached through the cache service when available; the cache is
    invalidated whenever a sale completes.
    """
    from app.services.cache_service import get_cache

    def load() -> Dict[str, Any]:
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)
        end = start + timedelta(days=1)

        row = session.query(
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total), 0),
            func.coalesce(func.sum(Sale.total_cost), 0),
            func.coalesce(func.sum(Sale.profit), 0),
            func.coalesce(func.sum(Sale.total_fees), 0),
            func.coalesce(func.sum(Sale.net_profit), 0),
        ).filter(
            Sale.status == SaleStatus.COMPLETED,
            Sale.created_at >= start,
            Sale.created_at < end,
        ).one()

        income = session.query(
            func.coalesce(func.sum(FinancialEntry.amount), 0)
        ).filter(
            FinancialEntry.type == EntryType.INCOME,
            FinancialEntry.status == EntryStatus.PAID,
            FinancialEntry.paid_date >= start,
            FinancialEntry.paid_date < end,
        ).scalar()

        return {
            'date': day.isoformat(),
            'sales_count': int(row[0] or 0),
            'revenue': to_money(row[1] or ZERO),
            'total_cost': to_money(row[2] or ZERO),
            'profit': to_money(row[3] or ZERO),
            'total_fees': to_money(row[4] or ZERO),
            'net_profit': to_money(row[5] or ZERO),
            'income_received': to_money(income or ZERO),
        }

    return get_cache().memoize(
        SUMMARY_CACHE_MODULE,
        f'summary:{day.isoformat()}',
        load,
        ttl=current_app.config.get('CACHE_SUMMARY_TTL', 60),
    )
