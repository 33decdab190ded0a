"""
Тесты настройки logging пакета.
"""

import logging

import pytest

from src.bot import logger as logger_module
from src.bot.logger import ROOT_LOGGER, configure_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Возвращает логгер "src" в исходное состояние для остальных тестов."""
    package_logger = logging.getLogger(ROOT_LOGGER)
    saved = (package_logger.level, list(package_logger.handlers), package_logger.propagate)
    package_logger.handlers.clear()
    yield
    package_logger.setLevel(saved[0])
    package_logger.handlers[:] = saved[1]
    package_logger.propagate = saved[2]


class TestConfigureLogging:
    def test_module_documented(self):
        assert logger_module.__doc__ and "stream handler" in logger_module.__doc__

    def test_single_handler(self):
        first = configure_logging("DEBUG")
        second = configure_logging("WARNING")

        assert first is second
        assert len(first.handlers) == 1
        assert first.level == logging.WARNING
        assert first.propagate is False

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("MMSIM_LOG_LEVEL", "error")
        assert configure_logging().level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging("chatty").level == logging.INFO
