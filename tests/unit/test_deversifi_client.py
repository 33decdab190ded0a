"""
Тесты DeversifiClient

HTTP слой подменяется fake session: проверяются URL запроса, timeout,
классификация ошибок (fetch / malformed) и конверсия в OrderBookSnapshot.
"""

from decimal import Decimal

import pytest
import requests

from src.core.domain import Side
from src.market_data import (
    DeversifiClient,
    MalformedSnapshotError,
    MarketDataError,
    SnapshotFetchError,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Записывает запросы и возвращает заготовленный ответ (или бросает exception)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def make_client(**session_kwargs):
    session = FakeSession(**session_kwargs)
    client = DeversifiClient(api_url="https://api.example.test/", depth=25, timeout_sec=3.0, session=session)
    return client, session


# =============================================================================
# SUCCESS PATH
# =============================================================================


class TestFetchSnapshot:
    """Тесты успешного получения snapshot"""

    def test_book_url(self):
        client, _ = make_client()
        assert client.book_url("ETH:USDT") == "https://api.example.test/market-data/book/ETH%3AUSDT/P0/25"

    def test_fetch_parses_levels(self):
        client, session = make_client(
            response=FakeResponse(payload=[[100, 1, 5], [101, 1, -3], [99, 1, 2], [102, 1, -1]])
        )

        snapshot = client.fetch_snapshot("ETH:USDT")

        assert snapshot.pair == "ETH:USDT"
        assert snapshot.best_prices() == (Decimal("100"), Decimal("101"))
        assert len(snapshot.side_levels(Side.ASK)) == 2
        assert session.calls == [("https://api.example.test/market-data/book/ETH%3AUSDT/P0/25", 3.0)]

    def test_empty_book(self):
        client, _ = make_client(response=FakeResponse(payload=[]))
        assert client.fetch_snapshot("ETH:USDT").is_empty


# =============================================================================
# ERRORS
# =============================================================================


class TestFetchErrors:
    """Ошибки источника отличаются от пустого book"""

    @pytest.mark.parametrize(
        "error",
        [requests.exceptions.Timeout("timed out"), requests.exceptions.ConnectionError("refused")],
    )
    def test_transport_error(self, error):
        client, _ = make_client(error=error)
        with pytest.raises(SnapshotFetchError):
            client.fetch_snapshot("ETH:USDT")

    def test_http_status(self):
        client, _ = make_client(response=FakeResponse(status_code=503, payload=[]))
        with pytest.raises(SnapshotFetchError, match="503"):
            client.fetch_snapshot("ETH:USDT")

    def test_invalid_json(self):
        client, _ = make_client(response=FakeResponse(payload=ValueError("Expecting value")))
        with pytest.raises(MalformedSnapshotError):
            client.fetch_snapshot("ETH:USDT")

    @pytest.mark.parametrize(
        "payload",
        [
            {"error": "unknown pair"},
            [[100, 1, 0]],
            [[100, 0, 1]],
            [[100, 1]],
            [[1e45, 1, 1.0], [2001.0, 1, -1.0]],
            [[100, 1, 1e13]],
        ],
    )
    def test_contract_violation(self, payload):
        client, _ = make_client(response=FakeResponse(payload=payload))
        with pytest.raises(MalformedSnapshotError):
            client.fetch_snapshot("ETH:USDT")

    def test_price_outside_decimal_grid(self):
        """Цена, которую сетка Decimal не вмещает, — malformed snapshot, а не crash"""

        class AcceptAll:
            def validate(self, payload):
                return None

        client, _ = make_client()
        client._validator = AcceptAll()

        with pytest.raises(MalformedSnapshotError):
            client.parse_snapshot("ETH:USDT", [[1e45, 1, 1.0], [2001.0, 1, -1.0]])

    def test_errors_are_recoverable_market_data_errors(self):
        assert issubclass(SnapshotFetchError, MarketDataError)
        assert issubclass(MalformedSnapshotError, MarketDataError)
