"""Вспомогательные HTTP-утилиты для Flask-обработчиков: ошибки в JSON-конверте."""

from __future__ import annotations

from flask import Response

from logger.logger import app_logger

from webtoolkit.errors import ToolkitError
from webtoolkit.jsonio import error_json

__all__ = ["bad_request", "server_error", "handle_413", "handle_toolkit_error"]


def bad_request(msg: str, code: int = 400) -> Response:
    """Сформировать JSON-ответ для 4xx-ошибок клиента.

    Логирует сообщение на уровне WARNING и возвращает конверт с error=true.
    :param msg: Текст ошибки для пользователя
    :param code: HTTP-код (по умолчанию 400)
    """
    app_logger.warning("Bad request: %s", msg)
    return error_json(msg, code)


def server_error(msg: str = "Internal server error") -> Response:
    """Сформировать JSON-ответ для 5xx-ошибок сервера (логируется на уровне ERROR)."""
    app_logger.error("Server error: %s", msg)
    return error_json(msg, 500)


def handle_413(max_content_length: int):
    """Фабрика обработчика ошибки 413 (слишком большой запрос).

    Возвращает функцию-обработчик, совместимую с `app.register_error_handler(413, ...)`,
    которая отдает конверт с человекочитаемым лимитом в мегабайтах.

    :param max_content_length: Максимальный размер тела запроса в байтах
    """

    def _handler(_e) -> Response:
        app_logger.error("Request entity too large")
        mb = max_content_length / (1024 * 1024)
        return error_json(f"The total upload is too large (> {mb} MB).", 413)

    return _handler


def handle_toolkit_error(err: ToolkitError) -> Response:
    """Обработчик для `app.register_error_handler(ToolkitError, ...)`.

    4xx логируются как WARNING, 5xx — как ERROR.
    """
    status = err.status_code
    if status >= 500:
        app_logger.error("%s: %s", type(err).__name__, err)
    else:
        app_logger.warning("%s: %s", type(err).__name__, err)
    return error_json(err, status)
