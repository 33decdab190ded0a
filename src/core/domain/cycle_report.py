"""
CycleReport — Результат одного refresh цикла

Immutable Pydantic модель, которую decision engine возвращает оркестратору:
лучшие цены и три упорядоченных списка ордеров (cancelled, taken, placed).
Каждый ордер несёт price/amount/side, чего достаточно для восстановления
изменения балансов на стороне presentation.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .order import Order, Side


class CycleReport(BaseModel):
    """
    Отчёт refresh цикла.

    degraded_sides — стороны, для которых в snapshot не было уровней;
    шаги, требующие лучшей цены этой стороны, пропущены.
    """

    best_bid: Optional[Decimal] = Field(None, gt=0, description="Лучший bid (None если сторона пуста)")
    best_ask: Optional[Decimal] = Field(None, gt=0, description="Лучший ask (None если сторона пуста)")
    cancelled_orders: tuple[Order, ...] = Field(default=(), description="Отменённые ордера")
    taken_orders: tuple[Order, ...] = Field(default=(), description="Исполненные ордера")
    placed_orders: tuple[Order, ...] = Field(default=(), description="Размещённые ордера")
    degraded_sides: tuple[Side, ...] = Field(default=(), description="Стороны без ликвидности")

    model_config = {"frozen": True}

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_sides)

