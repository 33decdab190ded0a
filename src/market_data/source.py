"""
MarketDataSource — контракт источника order book

Источник возвращает OrderBookSnapshot для пары. Ошибки источника отличаются
от пустого book:
- SnapshotFetchError: транспорт, timeout, не-200 ответ
- MalformedSnapshotError: невалидный JSON или нарушение контракта
- пустой snapshot: валидный результат (нулевая ликвидность)

Все ошибки источника восстановимы: цикл пропускается, следующий tick повторяет.
"""

from typing import Protocol

from src.core.domain import OrderBookSnapshot


class MarketDataError(Exception):
    """Восстановимая ошибка внешнего источника данных."""


class SnapshotFetchError(MarketDataError):
    """Не удалось получить snapshot (сеть, timeout, HTTP статус)."""


class MalformedSnapshotError(MarketDataError):
    """Snapshot получен, но не декодируется или нарушает контракт."""


class MarketDataSource(Protocol):
    """Источник снапшотов order book."""

    def fetch_snapshot(self, pair: str) -> OrderBookSnapshot:
        ...
