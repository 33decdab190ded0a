"""
BotRunner — оркестрация refresh циклов

Поток управления одного цикла:
    MarketDataSource.fetch_snapshot(pair) → DecisionEngine.refresh(snapshot)
    → CycleReport → presentation → logging

Модель исполнения: однопоточная, циклы строго последовательны.
- Не более одного refresh цикла одновременно (non-blocking lock);
  tick, пришедший во время цикла или пропущенный из-за долгого цикла,
  отбрасывается и учитывается, а не ставится в очередь
- Ошибка market data → цикл пропускается, ledger не изменён, следующий tick повторяет
- TradingLogicError (нарушение инварианта ledger / eviction limit) → фатально:
  ошибка логируется вместе со статусом ledger и пробрасывается, runner останавливается
- Статус выводится по своему интервалу независимо от успеха циклов

Всё состояние передаётся явно через BotContext (без module-level state).
"""

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from src.core.domain import CycleReport
from src.engine import DecisionEngine
from src.ledger import Ledger, TradingLogicError
from src.market_data import DeversifiClient, MarketDataError, MarketDataSource

from .config import BotConfig
from .presentation import format_cycle_report, format_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BotContext:
    """Связка ledger / engine / market data для одной пары."""

    config: BotConfig
    ledger: Ledger
    engine: DecisionEngine
    market_data: MarketDataSource


def create_context(
    config: BotConfig,
    market_data: Optional[MarketDataSource] = None,
    rng: Optional[random.Random] = None,
) -> BotContext:
    """
    Сборка BotContext из конфигурации.

    Args:
        config: Конфигурация бота
        market_data: Источник book (default: DeversifiClient по config)
        rng: Генератор случайных чисел (default: random.Random(config.seed))
    """
    ledger = Ledger(config.initial_balances())
    engine = DecisionEngine(
        ledger,
        config.engine_config(),
        rng=rng or random.Random(config.seed),
    )
    if market_data is None:
        market_data = DeversifiClient(
            api_url=config.api_url,
            depth=config.book_depth,
            timeout_sec=config.fetch_timeout_sec,
        )
    return BotContext(config=config, ledger=ledger, engine=engine, market_data=market_data)


def display_status(context: BotContext) -> str:
    line = format_status(
        context.ledger.get_status(),
        context.config.base_asset,
        context.config.quote_asset,
    )
    logger.info(line)
    return line


def refresh_cycle(context: BotContext) -> Optional[CycleReport]:
    """
    Один refresh цикл.

    Returns:
        CycleReport, либо None если цикл пропущен из-за ошибки market data

    Raises:
        TradingLogicError: Нарушение инварианта, цикл прерван
    """
    pair = context.config.pair
    try:
        snapshot = context.market_data.fetch_snapshot(pair)
    except MarketDataError as e:
        logger.warning("Refresh skipped for %s: %s", pair, e)
        return None

    try:
        report = context.engine.refresh(snapshot)
    except TradingLogicError:
        logger.exception(
            "Ledger logic error during refresh, ledger can no longer be trusted; %s",
            format_status(
                context.ledger.get_status(),
                context.config.base_asset,
                context.config.quote_asset,
            ),
        )
        raise

    for line in format_cycle_report(report, context.config.base_asset, context.config.quote_asset):
        logger.info(line)
    return report


def _advance(scheduled: float, interval: float, now: float) -> tuple[float, int]:
    """
    Следующий tick не раньше now.

    Returns:
        (next_tick, missed) — missed: число tick, пропущенных за время цикла
    """
    next_tick = scheduled + interval
    if next_tick >= now:
        return next_tick, 0
    missed = int((now - next_tick) // interval) + 1
    return next_tick + missed * interval, missed


class BotRunner:
    """
    Fixed-interval цикл: статус и refresh по независимым расписаниям.
    """

    def __init__(
        self,
        context: BotContext,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            context: BotContext
            clock: Монотонные часы в секундах (инжектируются в тестах)
            sleep: Функция ожидания (инжектируется в тестах)
        """
        self.context = context
        self.clock = clock
        self.sleep = sleep
        self._cycle_lock = threading.Lock()

        self.cycles_run = 0
        self.cycles_skipped = 0
        self.ticks_skipped = 0

    def run_cycle(self) -> Optional[CycleReport]:
        """
        Refresh цикл под lock: повторный вход во время цикла пропускается.
        """
        if not self._cycle_lock.acquire(blocking=False):
            self.ticks_skipped += 1
            logger.warning("Previous refresh cycle still in flight, tick skipped")
            return None

        try:
            report = refresh_cycle(self.context)
        finally:
            self._cycle_lock.release()

        self.cycles_run += 1
        if report is None:
            self.cycles_skipped += 1
        return report

    def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Основной цикл: статус сразу и каждые status_interval_sec,
        refresh сразу и каждые refresh_interval_sec.

        Args:
            max_cycles: Остановиться после N refresh циклов (None — бесконечно)

        Raises:
            TradingLogicError: Фатальная логическая ошибка цикла
        """
        config = self.context.config
        start = self.clock()
        next_status = start
        next_refresh = start

        logger.info(
            "Starting %s: refresh every %ss, status every %ss",
            config.pair, config.refresh_interval_sec, config.status_interval_sec,
        )

        while max_cycles is None or self.cycles_run < max_cycles:
            now = self.clock()

            if now >= next_status:
                display_status(self.context)
                next_status, _ = _advance(next_status, config.status_interval_sec, now)

            if now >= next_refresh:
                self.run_cycle()
                next_refresh, missed = _advance(next_refresh, config.refresh_interval_sec, self.clock())
                if missed:
                    self.ticks_skipped += missed
                    logger.warning("Refresh cycle overran its interval, %d tick(s) skipped", missed)

            if max_cycles is not None and self.cycles_run >= max_cycles:
                break

            delay = min(next_status, next_refresh) - self.clock()
            if delay > 0:
                self.sleep(delay)

        logger.info(
            "Stopped after %d cycle(s) (%d skipped on market data errors, %d tick(s) dropped)",
            self.cycles_run, self.cycles_skipped, self.ticks_skipped,
        )
