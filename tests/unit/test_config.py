"""
Тесты BotConfig / load_config

Проверяет значения по умолчанию, приоритет источников
(.env < окружение < overrides) и отклонение невалидных значений.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from src.bot.config import BotConfig, ConfigError, load_config
from src.core.domain import Balances


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch):
    """Каталог без .env, чтобы тесты не читали локальные настройки."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestDefaults:
    """Тесты значений по умолчанию"""

    def test_defaults(self):
        config = load_config(environ={})

        assert config.pair == "ETH:USDT"
        assert config.base_asset == "ETH"
        assert config.quote_asset == "USDT"
        assert config.initial_balances() == Balances(base=Decimal("10"), quote=Decimal("2000"))
        assert config.make_ratio == Decimal("0.9")
        assert config.span == Decimal("0.01")
        assert (config.maintain_bids, config.maintain_asks) == (5, 5)
        assert config.refresh_interval_sec == 5.0
        assert config.status_interval_sec == 30.0
        assert config.seed is None

    def test_engine_config(self):
        engine_config = BotConfig(span=Decimal("0.02"), maintain_bids=3).engine_config()
        assert engine_config.span == Decimal("0.02")
        assert engine_config.maintain_bids == 3
        assert engine_config.make_ratio == Decimal("0.9")

    def test_pair_normalized(self):
        assert BotConfig(pair="btc:usd").pair == "BTC:USD"


class TestSources:
    """Тесты приоритета источников конфигурации"""

    def test_environment(self):
        config = load_config(environ={"MMSIM_SPAN": "0.05", "MMSIM_MAINTAIN_BIDS": "3", "OTHER": "x"})
        assert config.span == Decimal("0.05")
        assert config.maintain_bids == 3

    def test_blank_values_ignored(self):
        config = load_config(environ={"MMSIM_SPAN": "  "})
        assert config.span == Decimal("0.01")

    def test_env_file(self, tmp_path: Path):
        env_file = tmp_path / "bot.env"
        env_file.write_text("MMSIM_PAIR=btc:usd\nMMSIM_INITIAL_QUOTE=500\n", encoding="utf-8")

        config = load_config(env_file=env_file, environ={})
        assert config.pair == "BTC:USD"
        assert config.initial_quote == Decimal("500")

    def test_default_dotenv_in_cwd(self, isolated_cwd: Path):
        (isolated_cwd / ".env").write_text("MMSIM_SEED=42\n", encoding="utf-8")
        assert load_config(environ={}).seed == 42

    def test_priority(self, tmp_path: Path):
        env_file = tmp_path / "bot.env"
        env_file.write_text("MMSIM_PAIR=BTC:USD\nMMSIM_SEED=1\nMMSIM_SPAN=0.02\n", encoding="utf-8")

        config = load_config(
            env_file=env_file,
            environ={"MMSIM_PAIR": "SOL:USDT", "MMSIM_SEED": "2"},
            overrides={"seed": 3, "pair": None},
        )
        assert config.span == Decimal("0.02")
        assert config.pair == "SOL:USDT"
        assert config.seed == 3


class TestInvalid:
    """Невалидная конфигурация → ConfigError"""

    def test_missing_env_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(env_file=tmp_path / "absent.env", environ={})

    @pytest.mark.parametrize(
        "environ",
        [
            {"MMSIM_MAKE_RATIO": "1.5"},
            {"MMSIM_SPAN": "0"},
            {"MMSIM_MAINTAIN_ASKS": "-1"},
            {"MMSIM_INITIAL_BASE": "-10"},
            {"MMSIM_PAIR": "ETHUSDT"},
            {"MMSIM_REFRESH_INTERVAL_SEC": "0"},
            {"MMSIM_SPAN": "abc"},
        ],
    )
    def test_invalid_values(self, environ):
        with pytest.raises(ConfigError):
            load_config(environ=environ)
