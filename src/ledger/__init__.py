"""Ledger — учёт балансов и resting ордеров с инвариантами сохранения капитала."""

from .ledger import (
    InsufficientAmount,
    InsufficientBalance,
    InsufficientCount,
    InvariantViolation,
    Ledger,
    LedgerError,
    OrderNotFound,
    SideConflict,
    TradingLogicError,
)

__all__ = [
    "Ledger",
    "TradingLogicError",
    "LedgerError",
    "InsufficientBalance",
    "SideConflict",
    "OrderNotFound",
    "InsufficientAmount",
    "InsufficientCount",
    "InvariantViolation",
]
