"""
BotConfig — параметры запуска бота

Immutable Pydantic модель, собираемая из переменных окружения MMSIM_*
(и необязательного .env файла через python-dotenv). Значения не
сохраняются между перезапусками.

Значения по умолчанию: ETH:USDT, 10 ETH / 2000 USDT, make_ratio 0.9,
span 1%, 5 bids / 5 asks, refresh каждые 5 секунд, статус каждые 30 секунд.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator

from src.core.domain import Balances
from src.engine import MAX_EVICTIONS_DEFAULT, MIN_AMOUNT, EngineConfig
from src.market_data import DEFAULT_BOOK_DEPTH, DEVERSIFI_API_URL

ENV_PREFIX = "MMSIM_"


class ConfigError(Exception):
    """Невалидная или неполная конфигурация."""


class BotConfig(BaseModel):
    """
    Конфигурация бота (пара, начальные балансы, параметры engine, интервалы).
    """

    # Пара и начальные балансы
    pair: str = Field(default="ETH:USDT", pattern=r"^[A-Za-z0-9]+:[A-Za-z0-9]+$", description="Торговая пара BASE:QUOTE")
    initial_base: Decimal = Field(default=Decimal("10"), ge=0, description="Начальный баланс base")
    initial_quote: Decimal = Field(default=Decimal("2000"), ge=0, description="Начальный баланс quote")

    # Decision engine
    make_ratio: Decimal = Field(default=Decimal("0.9"), gt=0, le=1, description="Целевая доля капитала в ордерах")
    span: Decimal = Field(default=Decimal("0.01"), gt=0, lt=1, description="Допустимое отклонение от лучших цен")
    maintain_bids: int = Field(default=5, ge=0, description="Целевое число bid уровней")
    maintain_asks: int = Field(default=5, ge=0, description="Целевое число ask уровней")
    min_amount: Decimal = Field(default=MIN_AMOUNT, gt=0, description="Dust threshold (base)")
    max_evictions: int = Field(default=MAX_EVICTIONS_DEFAULT, ge=1, description="Лимит eviction loop")

    # Интервалы (секунды)
    refresh_interval_sec: float = Field(default=5.0, gt=0, description="Интервал refresh цикла")
    status_interval_sec: float = Field(default=30.0, gt=0, description="Интервал вывода статуса")

    # Market data
    api_url: str = Field(default=DEVERSIFI_API_URL, min_length=1, description="Базовый URL market data API")
    book_depth: int = Field(default=DEFAULT_BOOK_DEPTH, ge=1, description="Глубина запрашиваемого book")
    fetch_timeout_sec: float = Field(default=10.0, gt=0, description="HTTP timeout запроса book")

    # Воспроизводимость
    seed: Optional[int] = Field(default=None, description="Seed генератора случайных чисел")

    model_config = {"frozen": True}

    @field_validator("pair")
    @classmethod
    def normalize_pair(cls, v: str) -> str:
        return v.upper()

    @property
    def base_asset(self) -> str:
        return self.pair.split(":")[0]

    @property
    def quote_asset(self) -> str:
        return self.pair.split(":")[1]

    def initial_balances(self) -> Balances:
        return Balances(base=self.initial_base, quote=self.initial_quote)

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            span=self.span,
            make_ratio=self.make_ratio,
            maintain_bids=self.maintain_bids,
            maintain_asks=self.maintain_asks,
            min_amount=self.min_amount,
            max_evictions=self.max_evictions,
        )


def _read_prefixed(values: Mapping[str, Optional[str]]) -> dict[str, str]:
    env: dict[str, str] = {}
    for key, value in values.items():
        if not key.startswith(ENV_PREFIX) or value is None or value.strip() == "":
            continue
        env[key[len(ENV_PREFIX):].lower()] = value.strip()
    return env


def load_config(
    env_file: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BotConfig:
    """
    Сборка BotConfig.

    Приоритет (от низшего к высшему): значения по умолчанию, .env файл,
    переменные окружения MMSIM_*, overrides (например, аргументы CLI).

    Args:
        env_file: Путь к .env файлу (None — .env в текущем каталоге, если есть)
        overrides: Явные значения полей (None-значения игнорируются)
        environ: Окружение (default: os.environ)

    Raises:
        ConfigError: Файл не найден или значения невалидны
    """
    if env_file is not None and not Path(env_file).is_file():
        raise ConfigError(f"Env file not found: {env_file}")

    dotenv_path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    values: dict[str, Any] = {}
    if dotenv_path.is_file():
        values.update(_read_prefixed(dotenv_values(dotenv_path)))

    values.update(_read_prefixed(os.environ if environ is None else environ))
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return BotConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
