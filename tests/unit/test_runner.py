"""
Тесты BotRunner / refresh_cycle

Часы и sleep подменяются fake реализациями, market data — заготовленными
снапшотами: проверяются расписание циклов, пропуск tick, обработка
восстановимых и фатальных ошибок.
"""

import logging
from decimal import Decimal

import pytest

from src.bot.config import BotConfig
from src.bot.runner import BotContext, BotRunner, _advance, create_context, display_status, refresh_cycle
from src.core.domain import OrderBookSnapshot
from src.ledger import InvariantViolation
from src.market_data import DeversifiClient, SnapshotFetchError


class FakeClock:
    """Монотонные часы, которые двигает только sleep (и явный advance)."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay


class FakeMarketData:
    def __init__(self, rows=None, error=None, clock=None, cycle_duration=0.0):
        self.rows = [[100, 1, 5], [101, 1, -3]] if rows is None else rows
        self.error = error
        self.clock = clock
        self.cycle_duration = cycle_duration
        self.calls = 0

    def fetch_snapshot(self, pair):
        self.calls += 1
        if self.clock is not None:
            self.clock.now += self.cycle_duration
        if self.error is not None:
            raise self.error
        return OrderBookSnapshot.from_rows(pair, self.rows)


class PayloadSession:
    """requests.Session с фиксированным JSON ответом."""

    class Response:
        status_code = 200

        def __init__(self, payload):
            self._payload = payload

        def json(self):
            return self._payload

    def __init__(self, payload):
        self.payload = payload

    def get(self, url, timeout=None):
        return self.Response(self.payload)


class BrokenEngine:
    def refresh(self, snapshot):
        raise InvariantViolation("corrupted ledger")


@pytest.fixture
def config():
    return BotConfig(seed=7, maintain_bids=2, maintain_asks=2)


def status_lines(caplog):
    return [r.getMessage() for r in caplog.records if r.getMessage().startswith("STATUS:")]


# =============================================================================
# REFRESH CYCLE
# =============================================================================


class TestRefreshCycle:
    """Тесты одного цикла"""

    def test_successful_cycle(self, config, caplog):
        caplog.set_level(logging.INFO)
        context = create_context(config, market_data=FakeMarketData())

        report = refresh_cycle(context)

        assert report is not None
        assert report.best_bid == Decimal("100")
        assert len(report.placed_orders) == 4
        messages = [r.getMessage() for r in caplog.records]
        assert "BEST BID/ASK 100 101" in messages
        assert sum(m.startswith("PLACED ") for m in messages) == 4

    def test_oversized_price_skips_cycle(self, config):
        """Цена вне сетки Decimal: цикл пропущен, ledger не изменён"""
        client = DeversifiClient(session=PayloadSession([[1e45, 1, 1.0], [2001.0, 1, -1.0]]))
        context = create_context(config, market_data=client)
        before = (context.ledger.balances, context.ledger.get_orders())

        assert refresh_cycle(context) is None
        assert (context.ledger.balances, context.ledger.get_orders()) == before

    def test_fetch_failure_leaves_ledger_unchanged(self, config, caplog):
        """Ошибка market data: цикл пропущен, ledger не изменён"""
        context = create_context(config, market_data=FakeMarketData(error=SnapshotFetchError("timeout")))
        before = (context.ledger.balances, context.ledger.get_orders())

        assert refresh_cycle(context) is None
        assert (context.ledger.balances, context.ledger.get_orders()) == before
        assert any("Refresh skipped" in r.getMessage() for r in caplog.records)

    def test_logic_error_propagates(self, config, caplog):
        context = create_context(config, market_data=FakeMarketData())
        broken = BotContext(config=config, ledger=context.ledger, engine=BrokenEngine(), market_data=context.market_data)

        with pytest.raises(InvariantViolation):
            refresh_cycle(broken)
        assert any(r.levelno == logging.ERROR and "STATUS:" in r.getMessage() for r in caplog.records)

    def test_seeded_runs_are_reproducible(self, config):
        first = refresh_cycle(create_context(config, market_data=FakeMarketData()))
        second = refresh_cycle(create_context(config, market_data=FakeMarketData()))
        assert first.placed_orders == second.placed_orders

    def test_display_status(self, config, caplog):
        caplog.set_level(logging.INFO)
        line = display_status(create_context(config, market_data=FakeMarketData()))
        assert line == "STATUS: ETH=10 USDT=2000 LOCKED_ETH=0(ASKS=0) LOCKED_USDT=0(BIDS=0)"
        assert status_lines(caplog) == [line]


# =============================================================================
# SCHEDULING
# =============================================================================


class TestAdvance:
    def test_next_tick_in_future(self):
        assert _advance(0.0, 5.0, 1.0) == (5.0, 0)

    def test_overrun_skips_missed_ticks(self):
        assert _advance(0.0, 5.0, 12.0) == (15.0, 2)

    def test_tick_at_now_still_runs(self):
        assert _advance(0.0, 5.0, 5.0) == (5.0, 0)


class TestBotRunner:
    """Тесты основного цикла"""

    def test_max_cycles(self, config):
        clock = FakeClock()
        market_data = FakeMarketData()
        runner = BotRunner(create_context(config, market_data=market_data), clock=clock, sleep=clock.sleep)

        runner.run(max_cycles=3)

        assert runner.cycles_run == 3
        assert market_data.calls == 3
        assert clock.sleeps == [5.0, 5.0]
        assert runner.ticks_skipped == 0

    def test_status_interval_independent_of_failures(self, config, caplog):
        """Статус выводится сразу и каждые 30 секунд, даже если все циклы пропущены"""
        caplog.set_level(logging.INFO)
        clock = FakeClock()
        market_data = FakeMarketData(error=SnapshotFetchError("down"))
        runner = BotRunner(create_context(config, market_data=market_data), clock=clock, sleep=clock.sleep)

        runner.run(max_cycles=7)

        assert runner.cycles_run == 7
        assert runner.cycles_skipped == 7
        assert clock.now == 30.0
        assert len(status_lines(caplog)) == 2

    def test_overrunning_cycle_drops_ticks(self, config):
        clock = FakeClock()
        market_data = FakeMarketData(clock=clock, cycle_duration=12.0)
        runner = BotRunner(create_context(config, market_data=market_data), clock=clock, sleep=clock.sleep)

        runner.run(max_cycles=2)

        assert runner.cycles_run == 2
        # 12s циклы: tick 5, 10 и затем 20, 25 пропущены
        assert runner.ticks_skipped == 4
        assert clock.sleeps == [3.0]

    def test_reentrant_tick_skipped(self, config):
        """Tick во время незавершённого цикла не запускает второй цикл"""
        market_data = FakeMarketData()
        runner = BotRunner(create_context(config, market_data=market_data))

        runner._cycle_lock.acquire()
        try:
            assert runner.run_cycle() is None
        finally:
            runner._cycle_lock.release()

        assert runner.ticks_skipped == 1
        assert runner.cycles_run == 0
        assert market_data.calls == 0

    def test_logic_error_stops_runner(self, config):
        context = create_context(config, market_data=FakeMarketData())
        broken = BotContext(config=config, ledger=context.ledger, engine=BrokenEngine(), market_data=context.market_data)
        clock = FakeClock()
        runner = BotRunner(broken, clock=clock, sleep=clock.sleep)

        with pytest.raises(InvariantViolation):
            runner.run(max_cycles=5)
        assert runner.cycles_run == 0
        assert clock.sleeps == []
