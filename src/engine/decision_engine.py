"""
Decision Engine — один refresh цикл market maker

Порядок шагов цикла:
1. Best price discovery (best_bid = max bid, best_ask = min ask)
2. Span bounds: min_bid = best_bid * (1 - span), max_ask = best_ask * (1 + span)
3. Отмена resting ордеров вне span
4. Simulated fills: ордера лучше лучшей встречной цены считаются исполненными
5. Replenishment (bids, затем asks): добор числа ордеров и заблокированного
   капитала до целевых значений со случайным делением бюджета
6. CycleReport

Цикл синхронный и детерминированный, кроме явной рандомизации через
инжектируемый random.Random.

Пустая сторона snapshot → degraded цикл: шаги, которым нужна лучшая цена
этой стороны, пропускаются только для неё.

Fill в шаге 4 — упрощение: resting ордер, цена которого лучше лучшей
встречной котировки, считается мгновенно и полностью исполненным
(без частичных fills и без учёта объёма контрагентов).
"""

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Final, Optional

from src.core.domain import CycleReport, LedgerStatus, Order, OrderBookSnapshot, Side
from src.core.math.decimal_safeguards import (
    BASE_QUANTUM,
    FRACTION_QUANTUM,
    ONE,
    PRICE_QUANTUM,
    QUOTE_QUANTUM,
    ZERO,
    calc_context,
    divide_down,
    exact_add,
    exact_sub,
    quantize_down,
    quantize_up,
    to_decimal,
    validate_in_range,
    validate_positive,
)
from src.ledger import Ledger, TradingLogicError

logger = logging.getLogger(__name__)


# =============================================================================
# ПАРАМЕТРЫ
# =============================================================================

# Минимальное количество base для размещения ордера (dust threshold)
MIN_AMOUNT: Final[Decimal] = Decimal("0.000001")

# Верхняя граница доли оставшегося бюджета для каждого ордера, кроме последнего
MAX_SLICE_FRACTION: Final[Decimal] = Decimal("0.5")

# Максимум отмен за один проход eviction loop одной стороны
MAX_EVICTIONS_DEFAULT: Final[int] = 10

_FRACTION_SCALE: Final[int] = 10**8


# =============================================================================
# EXCEPTIONS
# =============================================================================


class EvictionLimitExceeded(TradingLogicError):
    """
    Eviction loop превысил max_evictions.

    Цикл вытеснения должен завершаться после первой отмены (появляется
    свободный слот); превышение лимита означает логическую ошибку.
    """


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class EngineConfig:
    """Параметры decision engine.

    - span: допустимая доля отклонения от лучших цен, (0, 1)
    - make_ratio: целевая доля капитала в resting ордерах, (0, 1]
    - maintain_bids / maintain_asks: целевое число resting уровней по сторонам
    - min_amount: dust threshold для количества base
    - max_evictions: предел отмен в eviction loop
    """
    span: Decimal = Decimal("0.01")
    make_ratio: Decimal = Decimal("0.9")
    maintain_bids: int = 5
    maintain_asks: int = 5
    min_amount: Decimal = MIN_AMOUNT
    max_evictions: int = MAX_EVICTIONS_DEFAULT

    def __post_init__(self) -> None:
        # Принимаем float/str из конфигурации, храним Decimal
        for name in ("span", "make_ratio", "min_amount"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

        if not ZERO < self.span < ONE:
            raise ValueError(f"span must be in (0, 1), got {self.span}")
        validate_positive(self.make_ratio, "make_ratio")
        validate_in_range(self.make_ratio, "make_ratio", max_value=ONE)
        validate_positive(self.min_amount, "min_amount")
        if self.maintain_bids < 0 or self.maintain_asks < 0:
            raise ValueError(
                f"maintain_bids/maintain_asks must be non-negative, "
                f"got {self.maintain_bids}/{self.maintain_asks}"
            )
        if self.max_evictions < 1:
            raise ValueError(f"max_evictions must be >= 1, got {self.max_evictions}")

    def maintain(self, side: Side) -> int:
        return self.maintain_bids if side is Side.BID else self.maintain_asks


# =============================================================================
# PRICE HELPERS
# =============================================================================


def span_bounds(
    best_bid: Optional[Decimal],
    best_ask: Optional[Decimal],
    span: Decimal,
) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """
    Границы span вокруг лучших цен.

    min_bid округляется вверх, max_ask вниз (на PRICE_QUANTUM), поэтому
    границы всегда лежат внутри точного диапазона и на сетке цен.

    Returns:
        (min_bid, max_ask); None для стороны без лучшей цены

    Examples:
        >>> span_bounds(Decimal("100"), Decimal("101"), Decimal("0.01"))
        (Decimal('99.00000000'), Decimal('102.01000000'))
    """
    ctx = calc_context()
    min_bid = None
    max_ask = None
    if best_bid is not None:
        min_bid = quantize_up(ctx.multiply(best_bid, ctx.subtract(ONE, span)), PRICE_QUANTUM)
    if best_ask is not None:
        max_ask = quantize_down(ctx.multiply(best_ask, ctx.add(ONE, span)), PRICE_QUANTUM)
    return min_bid, max_ask


def random_fraction(rng: random.Random) -> Decimal:
    """Равномерная доля в [0, 1) на сетке FRACTION_QUANTUM."""
    return calc_context().multiply(Decimal(int(rng.random() * _FRACTION_SCALE)), FRACTION_QUANTUM)


def random_price(rng: random.Random, low: Decimal, high: Decimal) -> Decimal:
    """
    Равномерная цена в [low, high) на сетке PRICE_QUANTUM.

    low и high должны лежать на сетке; вырожденный диапазон (high <= low) → low.
    """
    if high <= low:
        return low
    ctx = calc_context()
    offset = ctx.multiply(random_fraction(rng), ctx.subtract(high, low))
    price = quantize_down(ctx.add(low, offset), PRICE_QUANTUM)
    return max(low, min(price, ctx.subtract(high, PRICE_QUANTUM)))


# =============================================================================
# DECISION ENGINE
# =============================================================================


class DecisionEngine:
    """Decision engine: cancel / fill / replenish поверх Ledger."""

    def __init__(
        self,
        ledger: Ledger,
        config: EngineConfig,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            ledger: Ledger, который engine читает и мутирует
            config: Параметры engine
            rng: Источник случайности (default: новый random.Random())
        """
        self.ledger = ledger
        self.config = config
        self.rng = rng or random.Random()

    def refresh(self, snapshot: OrderBookSnapshot) -> CycleReport:
        """
        Один refresh цикл.

        Args:
            snapshot: Свежий снапшот order book

        Returns:
            CycleReport с лучшими ценами и всеми изменениями цикла

        Raises:
            LedgerError / EvictionLimitExceeded: логическая ошибка, цикл прерван
        """
        best_bid, best_ask = snapshot.best_prices()
        degraded = tuple(
            side
            for side, best in ((Side.BID, best_bid), (Side.ASK, best_ask))
            if best is None
        )
        for side in degraded:
            logger.warning("Order book for %s has no %s levels, %s side skipped", snapshot.pair, side.value, side.value)

        min_bid, max_ask = span_bounds(best_bid, best_ask, self.config.span)

        cancelled = self._cancel_out_of_span(min_bid, max_ask)
        taken = self._fill(best_bid, best_ask)

        placed_bids: list[Order] = []
        cancelled_bids: list[Order] = []
        if best_bid is not None:
            placed_bids, cancelled_bids = self._replenish(Side.BID, min_bid, best_bid)

        placed_asks: list[Order] = []
        cancelled_asks: list[Order] = []
        if best_ask is not None:
            placed_asks, cancelled_asks = self._replenish(Side.ASK, best_ask, max_ask)

        return CycleReport(
            best_bid=best_bid,
            best_ask=best_ask,
            cancelled_orders=tuple(cancelled + cancelled_bids + cancelled_asks),
            taken_orders=tuple(taken),
            placed_orders=tuple(placed_bids + placed_asks),
            degraded_sides=degraded,
        )

    # -------------------------------------------------------------------------
    # STEPS 3-4: CANCEL / FILL
    # -------------------------------------------------------------------------

    def _cancel_out_of_span(
        self, min_bid: Optional[Decimal], max_ask: Optional[Decimal]
    ) -> list[Order]:
        """Отмена bids ниже min_bid и asks выше max_ask."""
        intents = [
            order
            for order in self.ledger.get_orders()
            if (order.is_bid and min_bid is not None and order.price < min_bid)
            or (not order.is_bid and max_ask is not None and order.price > max_ask)
        ]
        for order in intents:
            self.ledger.cancel(order)
        return intents

    def _fill(self, best_bid: Optional[Decimal], best_ask: Optional[Decimal]) -> list[Order]:
        """Simulated fill: bids выше best_bid и asks ниже best_ask."""
        intents = [
            order
            for order in self.ledger.get_orders()
            if (order.is_bid and best_bid is not None and order.price > best_bid)
            or (not order.is_bid and best_ask is not None and order.price < best_ask)
        ]
        for order in intents:
            self.ledger.take(order)
        return intents

    # -------------------------------------------------------------------------
    # STEP 5: REPLENISHMENT
    # -------------------------------------------------------------------------

    def _gaps(self, status: LedgerStatus, side: Side) -> tuple[int, Decimal]:
        """
        Недостающие слоты и бюджет стороны.

        target = make_ratio * (unlocked + locked) в asset бюджета стороны
        (quote для bids, base для asks), округлённый вниз.
        """
        missing = self.config.maintain(side) - status.resting(side)
        quantum = QUOTE_QUANTUM if side is Side.BID else BASE_QUANTUM
        total = exact_add(status.unlocked(side), status.locked(side))
        target = quantize_down(calc_context().multiply(self.config.make_ratio, total), quantum)
        return missing, exact_sub(target, status.locked(side))

    def _replenish(
        self, side: Side, low: Decimal, high: Decimal
    ) -> tuple[list[Order], list[Order]]:
        """
        Добор ордеров стороны.

        Eviction loop: пока свободных слотов нет, а бюджет ещё не выбран,
        отменяется первый resting ордер стороны. Затем оставшийся бюджет
        делится между недостающими слотами: каждый ордер, кроме последнего,
        берёт случайную долю [0, 0.5) текущего остатка, последний забирает остаток.

        Returns:
            (placed, cancelled)
        """
        placed: list[Order] = []
        cancelled: list[Order] = []

        missing, budget = self._gaps(self.ledger.get_status(), side)

        evictions = 0
        while missing == 0 and budget > 0:
            victim = next((o for o in self.ledger.get_orders() if o.side is side), None)
            if victim is None:
                break
            if evictions >= self.config.max_evictions:
                raise EvictionLimitExceeded(
                    f"{side.value} eviction loop exceeded {self.config.max_evictions} "
                    f"cancellations (budget gap {budget})"
                )
            self.ledger.cancel(victim)
            cancelled.append(victim)
            evictions += 1
            missing, budget = self._gaps(self.ledger.get_status(), side)

        if missing <= 0 or budget <= 0:
            return placed, cancelled

        quantum = QUOTE_QUANTUM if side is Side.BID else BASE_QUANTUM
        ctx = calc_context()
        remaining = budget
        for index in range(missing):
            if index < missing - 1:
                fraction = ctx.multiply(random_fraction(self.rng), MAX_SLICE_FRACTION)
                value = quantize_down(ctx.multiply(remaining, fraction), quantum)
            else:
                value = remaining
            # Бюджет списывается и для пропущенных (dust) ордеров
            remaining = exact_sub(remaining, value)

            order = self._build_order(side, value, low, high)
            if order is None:
                continue
            self.ledger.make(order)
            placed.append(order)

        return placed, cancelled

    def _build_order(
        self, side: Side, value: Decimal, low: Decimal, high: Decimal
    ) -> Optional[Order]:
        """Ордер на value бюджета по случайной цене; None для dust."""
        price = random_price(self.rng, low, high)

        if side is Side.BID:
            amount = divide_down(value, price, BASE_QUANTUM)
        else:
            amount = value

        if amount < self.config.min_amount:
            logger.debug("Skipping dust %s: amount %s below %s", side.value, amount, self.config.min_amount)
            return None

        resting = self.ledger.get_order(price)
        if resting is not None and resting.side is not side:
            # Только при пересекающемся book (best_bid >= best_ask)
            logger.warning(
                "Skipping %s @ %s: %s already rests at this price",
                side.value, price, resting.side.value,
            )
            return None

        return Order(price=price, count=1, amount=amount, side=side)
