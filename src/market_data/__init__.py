"""Market data — источники снапшотов внешнего order book."""

from .deversifi import DEFAULT_BOOK_DEPTH, DEVERSIFI_API_URL, DeversifiClient
from .source import (
    MalformedSnapshotError,
    MarketDataError,
    MarketDataSource,
    SnapshotFetchError,
)

__all__ = [
    "MarketDataSource",
    "MarketDataError",
    "SnapshotFetchError",
    "MalformedSnapshotError",
    "DeversifiClient",
    "DEVERSIFI_API_URL",
    "DEFAULT_BOOK_DEPTH",
]
