"""
Order — Модель ордера и денежных величин

Immutable Pydantic модели:
- Side: явная сторона ордера (BID/ASK) вместо знака amount
- Balances: пара неотрицательных величин base/quote (балансы, make/take value)
- Order: ордер на ценовом уровне (price, count, amount, side)

Знаковое представление (amount > 0 — bid, amount < 0 — ask) существует только
на границе с внешним order book: Order.from_signed / Order.signed_amount.
"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.math.decimal_safeguards import ZERO, exact_mul, to_decimal


# =============================================================================
# ENUMS
# =============================================================================


class Side(str, Enum):
    """Сторона ордера"""

    BID = "BID"
    ASK = "ASK"

    @property
    def opposite(self) -> "Side":
        return Side.ASK if self is Side.BID else Side.BID


# =============================================================================
# BALANCES
# =============================================================================


class Balances(BaseModel):
    """
    Пара величин в base и quote.

    Используется для незаблокированных балансов ledger, а также для make value
    (зарезервированный капитал) и take value (капитал, полученный при fill).
    """

    base: Decimal = Field(default=ZERO, ge=0, description="Количество base asset")
    quote: Decimal = Field(default=ZERO, ge=0, description="Количество quote asset")

    model_config = {"frozen": True}


# =============================================================================
# ORDER MODEL
# =============================================================================


class Order(BaseModel):
    """
    Модель ордера на ценовом уровне.

    count — число агрегированных ордеров на этой цене (для merge/split),
    amount — всегда положительное количество base, сторона задаётся side.

    Immutable модель (frozen=True). Агрегация и частичное снятие создают
    новый экземпляр.
    """

    price: Decimal = Field(..., gt=0, description="Цена (quote за 1 base)")
    count: int = Field(..., gt=0, description="Число агрегированных ордеров")
    amount: Decimal = Field(..., gt=0, description="Количество base (всегда положительное)")
    side: Side = Field(..., description="Сторона ордера (BID/ASK)")

    model_config = {"frozen": True}

    @classmethod
    def from_signed(cls, price: Any, count: int, amount: Any) -> "Order":
        """
        Конверсия из знакового представления внешнего order book.

        Args:
            price: Цена уровня
            count: Число ордеров на уровне
            amount: Знаковое количество (> 0 — bid, < 0 — ask)

        Returns:
            Order с явной стороной и положительным amount

        Raises:
            ValueError: Если amount == 0 (сторона не определена)
        """
        signed = to_decimal(amount)
        if signed == 0:
            raise ValueError(f"Order amount must be non-zero, got {amount!r}")

        side = Side.BID if signed > 0 else Side.ASK
        return cls(price=to_decimal(price), count=count, amount=abs(signed), side=side)

    @property
    def signed_amount(self) -> Decimal:
        """Знаковое количество для внешнего представления (ask → отрицательное)."""
        return self.amount if self.side is Side.BID else -self.amount

    @property
    def is_bid(self) -> bool:
        return self.side is Side.BID

    def make_value(self) -> Balances:
        """
        Капитал, резервируемый ордером.

        - BID: price * amount quote
        - ASK: amount base
        """
        if self.is_bid:
            return Balances(quote=exact_mul(self.price, self.amount))
        return Balances(base=self.amount)

    def take_value(self) -> Balances:
        """
        Капитал, получаемый при исполнении ордера.

        - BID: amount base (quote уже потрачен при make)
        - ASK: price * amount quote (base уже потрачен при make)
        """
        if self.is_bid:
            return Balances(base=self.amount)
        return Balances(quote=exact_mul(self.price, self.amount))
