"""
Ledger — учёт балансов и resting ордеров

Единственный владелец балансов (base/quote) и набора resting ордеров
(один уровень на цену). Операции make/take/cancel атомарно обновляют
балансы и ордера.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. base >= 0 и quote >= 0 после любой операции
2. На одной цене никогда не стоят одновременно bid и ask
3. make/cancel не меняют unlocked + locked по каждому asset;
   take обменивает один asset на другой по цене ордера
4. Нельзя разблокировать больше, чем было зарезервировано
5. Вся арифметика точная (decimal.Inexact → exception)

Любое нарушение — логическая ошибка (LedgerError): цикл прерывается,
частичное восстановление не выполняется.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal, Inexact
from typing import Iterator, Optional

from src.core.domain import Balances, LedgerStatus, Order, Side
from src.core.math.decimal_safeguards import ZERO, exact_add, exact_sub

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TradingLogicError(Exception):
    """
    Логическая ошибка торгового ядра.

    Означает дефект логики, а не внешний сбой: после неё внутренней
    согласованности ledger доверять нельзя, цикл прерывается.
    """


class LedgerError(TradingLogicError):
    """Нарушение инварианта ledger."""


class InsufficientBalance(LedgerError):
    """Недостаточно незаблокированного баланса для make."""


class SideConflict(LedgerError):
    """Ордер противоположной стороны уже стоит на этой цене."""


class OrderNotFound(LedgerError):
    """На указанной цене нет resting ордера."""


class InsufficientAmount(LedgerError):
    """Resting ордер меньше запрошенного amount."""


class InsufficientCount(LedgerError):
    """Resting ордер меньше запрошенного count."""


class InvariantViolation(LedgerError):
    """Несогласованность amount/count при снятии или нарушение инварианта."""


@contextmanager
def _exact(operation: str, order: Order) -> Iterator[None]:
    """decimal.Inexact внутри операции ledger → InvariantViolation."""
    try:
        yield
    except Inexact as e:
        raise InvariantViolation(
            f"{operation} of {order!r} is not exactly representable"
        ) from e


# =============================================================================
# LEDGER
# =============================================================================


class Ledger:
    """
    Ledger балансов и resting ордеров.

    Ордера хранятся в dict[price → Order] в порядке вставки;
    агрегация на существующей цене сохраняет позицию уровня.
    """

    def __init__(self, balances: Balances):
        """
        Args:
            balances: Начальные незаблокированные балансы
        """
        self._balances = balances
        self._orders: dict[Decimal, Order] = {}

    # -------------------------------------------------------------------------
    # READS
    # -------------------------------------------------------------------------

    @property
    def balances(self) -> Balances:
        """Незаблокированные балансы."""
        return self._balances

    def get_orders(self) -> tuple[Order, ...]:
        """
        Снапшот resting ордеров (в порядке вставки).

        Возвращается tuple, поэтому вызывающий код может мутировать ledger
        во время итерации.
        """
        return tuple(self._orders.values())

    def get_order(self, price: Decimal) -> Optional[Order]:
        return self._orders.get(price)

    def get_status(self) -> LedgerStatus:
        """
        Снапшот состояния: балансы, число bid/ask уровней, заблокированный капитал.
        """
        bids = asks = 0
        placed_base = placed_quote = ZERO

        for order in self._orders.values():
            if order.is_bid:
                bids += 1
            else:
                asks += 1
            value = order.make_value()
            placed_base = exact_add(placed_base, value.base)
            placed_quote = exact_add(placed_quote, value.quote)

        return LedgerStatus(
            base=self._balances.base,
            quote=self._balances.quote,
            bids=bids,
            asks=asks,
            placed_base=placed_base,
            placed_quote=placed_quote,
        )

    def total_base(self) -> Decimal:
        """unlocked + locked base."""
        status = self.get_status()
        return exact_add(status.base, status.placed_base)

    def total_quote(self) -> Decimal:
        """unlocked + locked quote."""
        status = self.get_status()
        return exact_add(status.quote, status.placed_quote)

    def check_invariants(self) -> None:
        """
        Полная проверка инвариантов ledger.

        Raises:
            InvariantViolation: Если нарушен любой инвариант
        """
        if self._balances.base < 0 or self._balances.quote < 0:
            raise InvariantViolation(f"Negative balance: {self._balances!r}")

        for price, order in self._orders.items():
            if order.price != price:
                raise InvariantViolation(
                    f"Order keyed by price {price} carries price {order.price}"
                )

    # -------------------------------------------------------------------------
    # MUTATIONS
    # -------------------------------------------------------------------------

    def make(self, order: Order) -> None:
        """
        Размещение ордера: резервирует make value и добавляет/агрегирует уровень.

        Все проверки выполняются до мутации (операция атомарна).

        Raises:
            SideConflict: На цене стоит ордер противоположной стороны
            InsufficientBalance: make value превышает незаблокированный баланс
        """
        with _exact("make", order):
            self._make(order)

        logger.debug("make %s %s @ %s (count=%d)", order.side.value, order.amount, order.price, order.count)

    def _make(self, order: Order) -> None:
        existing = self._orders.get(order.price)
        if existing is not None and existing.side is not order.side:
            raise SideConflict(
                f"Unable to place {order.side.value} at {order.price}: "
                f"{existing.side.value} already rests at the same price"
            )

        value = order.make_value()
        if value.base > self._balances.base:
            raise InsufficientBalance(
                f"Not enough base balance to make order {order!r}: "
                f"need {value.base}, have {self._balances.base}"
            )
        if value.quote > self._balances.quote:
            raise InsufficientBalance(
                f"Not enough quote balance to make order {order!r}: "
                f"need {value.quote}, have {self._balances.quote}"
            )

        self._debit(value)

        if existing is None:
            self._orders[order.price] = order
        else:
            self._orders[order.price] = existing.model_copy(
                update={
                    "count": existing.count + order.count,
                    "amount": exact_add(existing.amount, order.amount),
                }
            )

    def take(self, order: Order) -> None:
        """
        Исполнение (fill) ордера: снимает срез и зачисляет его take value.

        Raises:
            OrderNotFound / SideConflict / InsufficientAmount / InsufficientCount /
            InvariantViolation: см. _remove_order
        """
        with _exact("take", order):
            value = order.take_value()
            self._remove_order(order)
            self._credit(value)
        logger.debug("take %s %s @ %s", order.side.value, order.amount, order.price)

    def cancel(self, order: Order) -> None:
        """
        Отмена ордера: снимает срез и возвращает его make value.

        Raises:
            OrderNotFound / SideConflict / InsufficientAmount / InsufficientCount /
            InvariantViolation: см. _remove_order
        """
        with _exact("cancel", order):
            value = order.make_value()
            self._remove_order(order)
            self._credit(value)
        logger.debug("cancel %s %s @ %s", order.side.value, order.amount, order.price)

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    def _remove_order(self, order: Order) -> None:
        """
        Правило снятия (общее для take и cancel).

        - amount равен resting amount → уровень удаляется (count должен совпасть)
        - иначе resting amount и count должны строго превышать запрошенные,
          и уменьшаются на запрошенные значения (остаток непустой)
        """
        existing = self._orders.get(order.price)
        if existing is None:
            raise OrderNotFound(f"No resting order at price {order.price}")

        if existing.side is not order.side:
            raise SideConflict(
                f"Unable to remove {order.side.value} at {order.price}: "
                f"resting order is {existing.side.value}"
            )

        if existing.amount < order.amount:
            raise InsufficientAmount(
                f"Not enough amount to remove order: have {existing.amount}, "
                f"need {order.amount} for {order!r}"
            )
        if existing.count < order.count:
            raise InsufficientCount(
                f"Not enough count to remove order: have {existing.count}, "
                f"need {order.count} for {order!r}"
            )

        if existing.amount == order.amount:
            if existing.count != order.count:
                raise InvariantViolation(
                    f"Full amount removal at {order.price} with count {order.count}, "
                    f"resting count is {existing.count}"
                )
            del self._orders[order.price]
            return

        if existing.count == order.count:
            raise InvariantViolation(
                f"Partial removal at {order.price} would leave amount "
                f"{exact_sub(existing.amount, order.amount)} with zero count"
            )

        self._orders[order.price] = existing.model_copy(
            update={
                "count": existing.count - order.count,
                "amount": exact_sub(existing.amount, order.amount),
            }
        )

    def _debit(self, value: Balances) -> None:
        self._balances = Balances(
            base=exact_sub(self._balances.base, value.base),
            quote=exact_sub(self._balances.quote, value.quote),
        )

    def _credit(self, value: Balances) -> None:
        self._balances = Balances(
            base=exact_add(self._balances.base, value.base),
            quote=exact_add(self._balances.quote, value.quote),
        )
