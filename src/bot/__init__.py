"""Bot — конфигурация, оркестрация refresh циклов, presentation и CLI."""

from .config import BotConfig, ConfigError, load_config
from .logger import configure_logging
from .presentation import format_cycle_report, format_status
from .runner import BotContext, BotRunner, create_context, display_status, refresh_cycle

__all__ = [
    "BotConfig",
    "ConfigError",
    "load_config",
    "configure_logging",
    "format_status",
    "format_cycle_report",
    "BotContext",
    "BotRunner",
    "create_context",
    "display_status",
    "refresh_cycle",
]
