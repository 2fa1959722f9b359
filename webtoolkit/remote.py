"""Отправка JSON во внешний сервис (POST через requests)."""

from __future__ import annotations

import json
from typing import Any

import requests

from logger.logger import app_logger

from webtoolkit.errors import RemotePushError, JSONEncodeError


def push_json_to_remote(
    uri: str, data: Any, session: requests.Session | None = None
) -> tuple[requests.Response, int]:
    """
    Сериализует data в JSON и отправляет POST на uri.

    Тело ответа не интерпретируется, но читается целиком до возврата, а соединение
    освобождается: вызывающий получает уже закрытый Response с доступными
    ``.content`` / ``.json()``.

    :param session: Своя requests.Session (таймауты, ретраи, auth). По умолчанию —
        новая сессия без таймаута, закрывается после запроса.
    :return: (response, status_code)
    :raises JSONEncodeError: data не сериализуется.
    :raises RemotePushError: транспортная ошибка.
    """
    try:
        payload = json.dumps(data, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise JSONEncodeError(f"cannot encode request as JSON: {e}") from e

    own_session = session is None
    http = requests.Session() if own_session else session
    try:
        with http.post(uri, data=payload, headers={"Content-Type": "application/json"}) as response:
            _ = response.content
    except requests.RequestException as e:
        app_logger.error("Push to %s failed: %s", uri, e)
        raise RemotePushError(f"push to {uri} failed: {e}") from e
    finally:
        if own_session:
            http.close()

    app_logger.info("Pushed JSON to %s: %s", uri, response.status_code)
    return response, response.status_code
