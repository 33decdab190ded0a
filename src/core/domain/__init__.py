"""
Domain models and value objects.

Contains fundamental domain entities: Side, Order, Balances, LedgerStatus,
OrderBookSnapshot, CycleReport.
"""

from src.core.domain.cycle_report import CycleReport
from src.core.domain.ledger_status import LedgerStatus
from src.core.domain.order import Balances, Order, Side
from src.core.domain.order_book import OrderBookSnapshot

__all__ = [
    # Order model
    "Side",
    "Balances",
    "Order",
    # Ledger snapshot
    "LedgerStatus",
    # Market data
    "OrderBookSnapshot",
    # Engine output
    "CycleReport",
]
