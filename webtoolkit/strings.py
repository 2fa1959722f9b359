"""Строковые утилиты: случайные идентификаторы и slug'и."""

from __future__ import annotations

import re
import secrets

from logger.logger import app_logger

from webtoolkit.errors import EmptySlugError, EmptyInputError, RandomSourceError

RANDOM_STRING_SOURCE = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+-="

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def random_string(n: int) -> str:
    """
    Возвращает строку из n случайных символов алфавита RANDOM_STRING_SOURCE.
    Каждый символ выбирается независимо через криптографический источник (secrets).
    :raises RandomSourceError: если источник энтропии ОС недоступен.
    """
    if n < 0:
        raise ValueError(f"length must be >= 0, got {n}")
    try:
        return "".join(secrets.choice(RANDOM_STRING_SOURCE) for _ in range(n))
    except OSError as e:
        app_logger.error("Random source failure: %s", e)
        raise RandomSourceError(f"random source unavailable: {e}") from e


def slugify(text: str) -> str:
    """
    Делает из произвольной строки URL-безопасный slug.

    Приводит к нижнему регистру, каждую серию символов вне [a-z0-9] заменяет
    одним '-', обрезает '-' по краям. Не-ASCII буквы не транслитерируются.
    """
    if not text:
        raise EmptyInputError("empty string not permitted")
    slug = _SLUG_SEPARATORS.sub("-", text.lower()).strip("-")
    if not slug:
        raise EmptySlugError("after replacing characters, slug length is zero")
    return slug
