"""
Contract Validation Module

Модуль для валидации JSON контрактов внешних источников данных.
"""

from .validators import (
    ContractValidator,
    OrderBookSnapshotValidator,
    SchemaLoader,
    validate_orderbook_snapshot,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "OrderBookSnapshotValidator",
    # Functions
    "validate_orderbook_snapshot",
]
