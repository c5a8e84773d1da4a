"""Customer aggregate maintenance (total purchases, last purchase)."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import CustomerNotFoundError
from app.models import Customer


def register_purchase(session: Session, customer_id: int, amount: Decimal,
                      at: Optional[datetime] = None) -> None:
    """
    Add a completed sale to the customer's running totals.

    Single UPDATE so concurrent checkouts for the same customer never lose
    an increment. Must run inside the checkout transaction.
    """
    at = at or datetime.now(timezone.utc)
    updated = session.query(Customer).filter(Customer.id == customer_id).update(
        {
            Customer.total_purchases: func.coalesce(Customer.total_purchases, 0) + amount,
            Customer.last_purchase: at,
            Customer.updated_at: func.now(),
        },
        synchronize_session=False,
    )
    if updated != 1:
        raise CustomerNotFoundError(customer_id)
