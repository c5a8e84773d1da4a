"""
Application signals.

``sale_completed`` is sent after a checkout commits, with the persisted
sale as ``sale``. Receivers (cache invalidation, notifications, loyalty,
analytics) must not affect the checkout: a failing receiver is logged and
the remaining receivers still run.
"""
import logging

from blinker import Namespace

logger = logging.getLogger(__name__)

_signals = Namespace()

sale_completed = _signals.signal('sale-completed')


def notify_sale_completed(sender, sale) -> None:
    """Deliver ``sale_completed`` to every receiver, isolating failures."""
    for receiver in list(sale_completed.receivers_for(sender)):
        try:
            receiver(sender, sale=sale)
        except Exception as e:
            logger.exception(f"[SALE] sale_completed receiver {receiver!r} failed for {sale.code}: {e}")
