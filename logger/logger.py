"""Логирование для webtoolkit.

Содержит два логгера:
- app_logger: логгер библиотеки и демо-сервиса с ротацией файлов (LOG_DIR/app.log).
- user_logger: JSON-логгер событий загрузки/скачивания (если указан USER_LOG_PATH).
"""

import os
import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

LOG_DIR = os.environ.get("LOG_DIR", "./logs")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
os.makedirs(LOG_DIR, exist_ok=True)


def get_app_logger() -> logging.Logger:
    """Возвращает логгер "webtoolkit" с RotatingFileHandler (10 MiB × 5).

    При повторном вызове (например, после reload модуля) старый файловый
    хэндлер заменяется, чтобы записи не дублировались."""
    logger = logging.getLogger("webtoolkit")
    for old in list(logger.handlers):
        if isinstance(old, RotatingFileHandler):
            logger.removeHandler(old)
            old.close()
    handler = RotatingFileHandler(os.path.join(LOG_DIR, "app.log"), maxBytes=10 * 1024 * 1024, backupCount=5)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    logger.propagate = False
    return logger


app_logger = get_app_logger()


# --- User logger (JSON lines, only if path set) ---
class JsonLinesFormatter(logging.Formatter):
    """Одна запись — одна JSON-строка для журнала загрузок и скачиваний.

    Поля события передаются как ``extra={"extra": {...}}`` и кладутся на верхний
    уровень рядом со служебными; служебные ключи они не перетирают.
    Время пишется в UTC в ISO 8601, traceback (если есть) — в поле "error"."""

    def __init__(self, static_fields=None):
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record):
        event = dict(self.static_fields)
        event.update(getattr(record, "extra", None) or {})
        event.update(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        )
        if record.exc_info:
            event["error"] = self.formatException(record.exc_info)
        return json.dumps(event, ensure_ascii=False, default=str)


def _user_log_file(base_path: str) -> str:
    if os.path.isdir(base_path):
        return os.path.join(base_path, "user_actions.json")
    return base_path


def get_user_logger():
    """Создаёт JSON-логгер пользовательских событий, если задан USER_LOG_PATH.

    USER_LOG_PATH может указывать на директорию (тогда файл user_actions.json)
    или на сам файл. Записи сбрасываются на диск после каждой строки.

    :return: logging.Logger или None, если путь не задан или логгер не удалось создать."""
    base_path = os.environ.get("USER_LOG_PATH")
    if not base_path:
        return None
    logger = logging.getLogger("user_actions")
    if not logger.handlers:
        try:
            handler = logging.FileHandler(_user_log_file(base_path), encoding="utf-8")
        except OSError as e:
            app_logger.error("Failed to setup user logger: %s", e)
            return None
        handler.setFormatter(JsonLinesFormatter({"service": "webtoolkit"}))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


user_logger = get_user_logger()
