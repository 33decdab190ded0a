"""
Presentation — текстовое представление статуса и отчётов цикла

Чистые функции без состояния: возвращают строки, вывод выполняет вызывающий
код через logging.

Для каждого ордера выводится сторона, цена, количество и изменение
base/quote, достаточное для восстановления изменения балансов:
- CANCELED: освобождённый make value
- FILLED: take value - make value (реализованный обмен)
"""

from decimal import Decimal
from typing import Optional

from src.core.domain import CycleReport, LedgerStatus, Order


def format_decimal(value: Optional[Decimal]) -> str:
    """Decimal без экспоненты и хвостовых нулей; None → '-'."""
    if value is None:
        return "-"
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "") else text


def format_status(status: LedgerStatus, base_asset: str, quote_asset: str) -> str:
    return (
        f"STATUS: {base_asset}={format_decimal(status.base)} "
        f"{quote_asset}={format_decimal(status.quote)} "
        f"LOCKED_{base_asset}={format_decimal(status.placed_base)}(ASKS={status.asks}) "
        f"LOCKED_{quote_asset}={format_decimal(status.placed_quote)}(BIDS={status.bids})"
    )


def describe_order(order: Order) -> str:
    return f"{order.side.value} @ {format_decimal(order.price)} {format_decimal(order.amount)}"


def cancel_delta(order: Order) -> tuple[Decimal, Decimal]:
    """Изменение незаблокированных (base, quote) при отмене."""
    value = order.make_value()
    return value.base, value.quote


def fill_delta(order: Order) -> tuple[Decimal, Decimal]:
    """Реализованное изменение (base, quote) при fill: take - make."""
    made = order.make_value()
    taken = order.take_value()
    return taken.base - made.base, taken.quote - made.quote


def format_cycle_report(report: CycleReport, base_asset: str, quote_asset: str) -> list[str]:
    """
    Строки отчёта цикла: лучшие цены, затем отмены, fills и размещения.
    """
    lines = [f"BEST BID/ASK {format_decimal(report.best_bid)} {format_decimal(report.best_ask)}"]

    for order in report.cancelled_orders:
        base, quote = cancel_delta(order)
        lines.append(
            f"CANCELED {describe_order(order)} "
            f"({base_asset} {format_decimal(base)} {quote_asset} {format_decimal(quote)})"
        )

    for order in report.taken_orders:
        base, quote = fill_delta(order)
        lines.append(
            f"FILLED {describe_order(order)} "
            f"({base_asset} {format_decimal(base)} {quote_asset} {format_decimal(quote)})"
        )

    for order in report.placed_orders:
        lines.append(f"PLACED {describe_order(order)}")

    return lines
