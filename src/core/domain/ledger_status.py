"""
LedgerStatus — Снапшот состояния ledger

Immutable Pydantic модель: незаблокированные балансы, число resting ордеров
по сторонам и суммарный заблокированный капитал (сумма make value).
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.math.decimal_safeguards import exact_add

from .order import Side


class LedgerStatus(BaseModel):
    """
    Снапшот ledger (чистое чтение, без побочных эффектов).
    """

    base: Decimal = Field(..., ge=0, description="Незаблокированный base")
    quote: Decimal = Field(..., ge=0, description="Незаблокированный quote")
    bids: int = Field(..., ge=0, description="Число resting bid уровней")
    asks: int = Field(..., ge=0, description="Число resting ask уровней")
    placed_base: Decimal = Field(..., ge=0, description="base, заблокированный в asks")
    placed_quote: Decimal = Field(..., ge=0, description="quote, заблокированный в bids")

    model_config = {"frozen": True}

    def resting(self, side: Side) -> int:
        """Число resting уровней стороны."""
        return self.bids if side is Side.BID else self.asks

    def unlocked(self, side: Side) -> Decimal:
        """Незаблокированный бюджет стороны (quote для bids, base для asks)."""
        return self.quote if side is Side.BID else self.base

    def locked(self, side: Side) -> Decimal:
        """Заблокированный бюджет стороны (quote для bids, base для asks)."""
        return self.placed_quote if side is Side.BID else self.placed_base

    @property
    def total_base(self) -> Decimal:
        return exact_add(self.base, self.placed_base)

    @property
    def total_quote(self) -> Decimal:
        return exact_add(self.quote, self.placed_quote)
