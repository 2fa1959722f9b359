"""Иерархия исключений toolkit.

Все ошибки наследуются от ToolkitError, поэтому Flask-приложению достаточно
одного обработчика (см. webtoolkit.http.handle_toolkit_error).
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webtoolkit.uploads import UploadedFile


class ToolkitError(Exception):
    """Базовая ошибка toolkit."""

    status_code = 400


class EmptyInputError(ToolkitError, ValueError):
    """Пустая строка на входе."""


class EmptySlugError(ToolkitError, ValueError):
    """После нормализации от строки ничего не осталось."""


class RandomSourceError(ToolkitError):
    """Источник случайности ОС недоступен."""

    status_code = 500


class JSONEncodeError(ToolkitError):
    """Значение нельзя сериализовать в JSON."""

    status_code = 500


class RemotePushError(ToolkitError):
    """Транспортная ошибка при отправке JSON во внешний сервис."""

    status_code = 502


# ---- Uploads ----


class UploadError(ToolkitError):
    """Ошибка загрузки файлов.

    Attributes:
        uploaded: Файлы, успешно записанные до ошибки. Они не удаляются —
            решение об очистке остаётся за вызывающим кодом.
    """

    def __init__(self, message: str, uploaded: list[UploadedFile] | None = None) -> None:
        super().__init__(message)
        self.uploaded: list[UploadedFile] = list(uploaded or [])


class UploadTooLargeError(UploadError):
    status_code = 413


class FileTypeNotPermittedError(UploadError):
    status_code = 415


class UploadIOError(UploadError):
    status_code = 500


class NoFileUploadedError(UploadError):
    pass


# ---- JSON requests ----


class JSONErrorKind(str, Enum):
    """Закрытый набор причин, по которым JSON-тело запроса отклонено."""

    EMPTY_BODY = "empty_body"
    TOO_LARGE = "too_large"
    SYNTAX = "syntax"
    TRUNCATED = "truncated"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_FIELD = "unknown_field"
    MISSING_FIELD = "missing_field"
    MULTIPLE_VALUES = "multiple_values"
    INVALID = "invalid"


class JSONRequestError(ToolkitError):
    """JSON-тело запроса не прошло разбор или валидацию.

    Attributes:
        kind: Причина из JSONErrorKind.
        field: Имя поля (через точку для вложенных), если известно.
        offset: Позиция в теле запроса, если известна.
    """

    def __init__(self, kind: JSONErrorKind, message: str, field: str | None = None, offset: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.offset = offset

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 413 if self.kind is JSONErrorKind.TOO_LARGE else 400
