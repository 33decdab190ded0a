"""
CLI: python -m src.bot

Запускает симуляцию market maker для одной пары по конфигурации из
окружения (MMSIM_*), .env файла и аргументов командной строки.

Коды выхода:
    0 — штатная остановка (max cycles или Ctrl-C)
    1 — ошибка конфигурации
    2 — фатальная логическая ошибка ledger/engine
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from src.ledger import TradingLogicError

from .config import ConfigError, load_config
from .logger import configure_logging
from .runner import BotRunner, create_context

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_LOGIC_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mmsim",
        description="Simulated market maker quoting against a live order book",
    )
    parser.add_argument("--env-file", type=Path, default=None, help="Path to a .env file with MMSIM_* settings")
    parser.add_argument("--pair", default=None, help="Trading pair BASE:QUOTE (default ETH:USDT)")
    parser.add_argument("--cycles", type=int, default=None, help="Stop after N refresh cycles")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for order placement")
    parser.add_argument("--log-level", default=None, help="Logging level (default MMSIM_LOG_LEVEL or INFO)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load_config(
            env_file=args.env_file,
            overrides={"pair": args.pair, "seed": args.seed},
        )
    except ConfigError as e:
        logger.error("%s", e)
        return EXIT_CONFIG_ERROR

    runner = BotRunner(create_context(config))
    try:
        runner.run(max_cycles=args.cycles)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
    except TradingLogicError:
        return EXIT_LOGIC_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
