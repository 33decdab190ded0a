"""
DeversifiClient — HTTP источник order book

GET {api_url}/market-data/book/{pair}/P0/{depth}
Ответ: JSON массив [price, count, amount] (amount > 0 — bid, < 0 — ask).

Payload проверяется JSON Schema контрактом orderbook_snapshot до конверсии
в доменные модели. Retry не выполняется: следующий refresh tick и есть retry.
"""

import logging
from decimal import DecimalException
from typing import Any, Final, Optional
from urllib.parse import quote

import requests
from jsonschema import ValidationError
from pydantic import ValidationError as ModelValidationError

from src.core.contracts import OrderBookSnapshotValidator
from src.core.domain import OrderBookSnapshot

from .source import MalformedSnapshotError, SnapshotFetchError

logger = logging.getLogger(__name__)

DEVERSIFI_API_URL: Final[str] = "https://api.deversifi.com"
DEFAULT_BOOK_DEPTH: Final[int] = 25
DEFAULT_TIMEOUT_SEC: Final[float] = 10.0


class DeversifiClient:
    """
    Клиент market data API (только публичный order book).
    """

    def __init__(
        self,
        api_url: str = DEVERSIFI_API_URL,
        depth: int = DEFAULT_BOOK_DEPTH,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            api_url: Базовый URL API
            depth: Число уровней book на запрос
            timeout_sec: HTTP timeout (hung fetch → SnapshotFetchError)
            session: requests.Session (default: новая сессия)
        """
        self.api_url = api_url.rstrip("/")
        self.depth = depth
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()
        self._validator = OrderBookSnapshotValidator()

    def book_url(self, pair: str) -> str:
        return f"{self.api_url}/market-data/book/{quote(pair, safe='')}/P0/{self.depth}"

    def fetch_snapshot(self, pair: str) -> OrderBookSnapshot:
        """
        Получение и валидация snapshot.

        Raises:
            SnapshotFetchError: Сетевая ошибка, timeout или HTTP статус != 200
            MalformedSnapshotError: Невалидный JSON или нарушение контракта
        """
        url = self.book_url(pair)
        try:
            response = self.session.get(url, timeout=self.timeout_sec)
        except requests.exceptions.RequestException as e:
            raise SnapshotFetchError(f"Order book request for {pair} failed: {e}") from e

        if response.status_code != 200:
            raise SnapshotFetchError(
                f"Order book request for {pair} returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedSnapshotError(f"Order book for {pair} is not valid JSON: {e}") from e

        return self.parse_snapshot(pair, payload)

    def parse_snapshot(self, pair: str, payload: Any) -> OrderBookSnapshot:
        """
        Конверсия декодированного payload в OrderBookSnapshot.

        Raises:
            MalformedSnapshotError: Payload нарушает контракт orderbook_snapshot
                или уровень не укладывается в сетку цен
        """
        try:
            self._validator.validate(payload)
        except ValidationError as e:
            raise MalformedSnapshotError(
                f"Order book for {pair} violates contract at {list(e.absolute_path)}: {e.message}"
            ) from e

        try:
            snapshot = OrderBookSnapshot.from_rows(pair, payload)
        except (ValueError, DecimalException, ModelValidationError) as e:
            raise MalformedSnapshotError(f"Order book for {pair} has invalid level: {e}") from e

        logger.debug("Fetched %d levels for %s", len(snapshot.levels), pair)
        return snapshot
