"""Логирование для webtoolkit.

Экспортирует:
- app_logger: основной логгер библиотеки и демо-сервиса
- user_logger: JSON-логгер пользовательских событий (по USER_LOG_PATH)
"""

from .logger import app_logger, user_logger  # noqa: F401

__all__ = ["app_logger", "user_logger"]
