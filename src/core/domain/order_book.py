"""
OrderBookSnapshot — Снапшот внешнего order book

Immutable Pydantic модель, представляющая ответ market data source:
неупорядоченный набор ценовых уровней (price, count, amount) с явной стороной.
Пустой snapshot — валидное состояние (нулевая ликвидность), а не ошибка.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from pydantic import BaseModel, Field

from src.core.math.decimal_safeguards import PRICE_QUANTUM, quantize

from .order import Order, Side


class OrderBookSnapshot(BaseModel):
    """
    Снапшот order book для одной торговой пары.
    """

    pair: str = Field(..., min_length=1, description="Торговая пара (например, 'ETH:USDT')")
    levels: tuple[Order, ...] = Field(default=(), description="Ценовые уровни (без порядка)")

    model_config = {"frozen": True}

    @classmethod
    def from_rows(cls, pair: str, rows: Iterable[Sequence[Any]]) -> "OrderBookSnapshot":
        """
        Построение снапшота из строк [price, count, signed_amount].

        Цены квантуются на PRICE_QUANTUM (ROUND_HALF_EVEN), чтобы лучшие цены
        лежали на той же сетке, что и цены размещаемых ордеров.

        Raises:
            ValueError / pydantic.ValidationError: Если строка некорректна
        """
        levels = []
        for price, count, amount in rows:
            order = Order.from_signed(price, count, amount)
            levels.append(
                order.model_copy(update={"price": quantize(order.price, PRICE_QUANTUM)})
            )
        return cls(pair=pair, levels=tuple(levels))

    def side_levels(self, side: Side) -> list[Order]:
        return [level for level in self.levels if level.side is side]

    def best_bid(self) -> Optional[Decimal]:
        """Максимальная цена среди bids (None если сторона пуста)."""
        prices = [level.price for level in self.side_levels(Side.BID)]
        return max(prices) if prices else None

    def best_ask(self) -> Optional[Decimal]:
        """Минимальная цена среди asks (None если сторона пуста)."""
        prices = [level.price for level in self.side_levels(Side.ASK)]
        return min(prices) if prices else None

    def best_prices(self) -> tuple[Optional[Decimal], Optional[Decimal]]:
        return self.best_bid(), self.best_ask()

    @property
    def is_empty(self) -> bool:
        return not self.levels
