"""Строгий разбор JSON-запросов и JSON-ответы в едином конверте.

Конверт ответа:
    {"error": false, "message": "...", "data": ...}   — успех (data опционально)
    {"error": true,  "message": "<текст ошибки>"}     — ошибка (по умолчанию 400)

Ошибки разбора — JSONRequestError с полем kind из закрытого набора JSONErrorKind.
"""

from __future__ import annotations

import json
import functools
import dataclasses
from typing import Any
from dataclasses import dataclass
from collections.abc import Mapping

from flask import Response
from pydantic import BaseModel, TypeAdapter, ValidationError
from werkzeug import Request
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.datastructures import Headers

from logger.logger import app_logger

from webtoolkit.config import ToolkitConfig
from webtoolkit.errors import JSONErrorKind, JSONEncodeError, JSONRequestError

JSON_WHITESPACE = " \t\n\r"

_decoder = json.JSONDecoder()


@dataclass
class JSONResponse:
    """Конверт, в котором уходят все JSON-ответы."""

    error: bool = False
    message: str = ""
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


# ---------- decode ----------


def _byte_offset(text: str, pos: int) -> int:
    """Позиция ошибки в байтах тела (1-based, как «прочитано N байт»)."""
    return len(text[:pos].encode("utf-8")) + 1


@functools.lru_cache(maxsize=128)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _is_truncated(text: str, err: json.JSONDecodeError) -> bool:
    """Ошибка разбора вызвана обрывом тела, а не мусором в нём."""
    if err.pos >= len(text.rstrip(JSON_WHITESPACE)):
        return True
    # json сообщает об обрыве внутри строки только текстом ошибки
    if err.msg.startswith("Unterminated string"):
        return True
    if err.msg.startswith("Expecting value"):
        tail = text[err.pos:].rstrip(JSON_WHITESPACE)
        return tail == "-" or any(word.startswith(tail) and word != tail for word in ("true", "false", "null"))
    return False


def _known_keys(model: type[BaseModel]) -> set[str]:
    keys = set()
    for name, info in model.model_fields.items():
        keys.add(name)
        for alias in (info.alias, info.validation_alias):
            if isinstance(alias, str):
                keys.add(alias)
    return keys


def _field_key(name: str, info: Any, raw: dict) -> str | None:
    for key in (info.validation_alias, info.alias, name):
        if isinstance(key, str) and key in raw:
            return key
    return None


def _find_unknown_key(value: Any, raw: Any, path: tuple = ()) -> str | None:
    """
    Ищет в разобранном JSON ключ, которого нет в моделях результата.

    Обходит уже провалидированное значение параллельно с исходным JSON, так что
    вложенные модели (в полях, списках, словарях) проверяются тоже. Модели с
    явной политикой extra в model_config сами решают, что делать с лишними ключами.

    :return: Путь к первому лишнему ключу через точку или None.
    """
    if isinstance(value, BaseModel) and isinstance(raw, dict):
        model = type(value)
        if model.model_config.get("extra") is None:
            known = _known_keys(model)
            for key in raw:
                if key not in known:
                    return ".".join(str(p) for p in (*path, key))
        for name, info in model.model_fields.items():
            key = _field_key(name, info, raw)
            if key is not None:
                found = _find_unknown_key(getattr(value, name), raw[key], (*path, key))
                if found:
                    return found
        return None

    if dataclasses.is_dataclass(value) and not isinstance(value, type) and isinstance(raw, dict):
        for f in dataclasses.fields(value):
            if f.name in raw:
                found = _find_unknown_key(getattr(value, f.name), raw[f.name], (*path, f.name))
                if found:
                    return found
        return None

    if isinstance(value, (list, tuple)) and isinstance(raw, list):
        for i, (item, raw_item) in enumerate(zip(value, raw)):
            found = _find_unknown_key(item, raw_item, (*path, i))
            if found:
                return found
        return None

    if isinstance(value, dict) and isinstance(raw, dict):
        for key, item in value.items():
            raw_key = key if key in raw else str(key)
            if raw_key in raw:
                found = _find_unknown_key(item, raw[raw_key], (*path, raw_key))
                if found:
                    return found
    return None


def _read_body(req: Request, max_bytes: int) -> bytes:
    too_large = JSONRequestError(
        JSONErrorKind.TOO_LARGE, f"maximum allowed request body size is {max_bytes} bytes"
    )
    if req.content_length is not None and req.content_length > max_bytes:
        raise too_large
    try:
        body = req.stream.read(max_bytes + 1)
    except RequestEntityTooLarge as e:
        raise too_large from e
    if len(body) > max_bytes:
        raise too_large
    return body


def _validation_error(err: ValidationError, text: str, end: int) -> JSONRequestError:
    """Переводит первую ошибку pydantic в JSONRequestError."""
    first = err.errors()[0]
    etype = first["type"]
    field = ".".join(str(p) for p in first["loc"]) or None

    if etype == "extra_forbidden":
        return JSONRequestError(
            JSONErrorKind.UNKNOWN_FIELD, f'request body contains unknown key "{field}"', field=field
        )
    if etype == "missing":
        return JSONRequestError(
            JSONErrorKind.MISSING_FIELD, f'request body is missing required field "{field}"', field=field
        )
    if etype.endswith("_type") or etype.endswith("_parsing"):
        if field:
            return JSONRequestError(
                JSONErrorKind.TYPE_MISMATCH,
                f'request body contains incorrect JSON type for field "{field}"',
                field=field,
            )
        offset = _byte_offset(text, end)
        return JSONRequestError(
            JSONErrorKind.TYPE_MISMATCH,
            f"request body contains incorrect JSON type: at character {offset}",
            offset=offset,
        )
    return JSONRequestError(
        JSONErrorKind.INVALID, f"error unmarshalling JSON request body: {first['msg']}", field=field
    )


def read_json(req: Request, target: Any = None, *, config: ToolkitConfig | None = None) -> Any:
    """
    Читает ровно одно JSON-значение из тела запроса.

    :param target: Тип результата (pydantic-модель, dataclass, list[...] и т.п.).
        Если None — возвращается разобранное значение как есть.
    :return: Экземпляр target (или dict/list/...).
    :raises JSONRequestError: тело пустое, слишком большое, битое, содержит
        больше одного значения или не подходит под target.
    """
    config = config or ToolkitConfig()
    body = _read_body(req, config.max_json_bytes)

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise JSONRequestError(
            JSONErrorKind.SYNTAX,
            f"request body contains badly formed JSON: at character {e.start + 1}",
            offset=e.start + 1,
        ) from e

    start = len(text) - len(text.lstrip(JSON_WHITESPACE))
    if start == len(text):
        raise JSONRequestError(JSONErrorKind.EMPTY_BODY, "request body cannot be empty")

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        if _is_truncated(text, e):
            raise JSONRequestError(
                JSONErrorKind.TRUNCATED, "request body contains badly formed JSON at some point within"
            ) from e
        offset = _byte_offset(text, e.pos)
        raise JSONRequestError(
            JSONErrorKind.SYNTAX, f"request body contains badly formed JSON: at character {offset}", offset=offset
        ) from e

    if text[end:].strip(JSON_WHITESPACE):
        raise JSONRequestError(JSONErrorKind.MULTIPLE_VALUES, "request body must only contain one JSON value")

    if target is None:
        return value

    try:
        result = _adapter(target).validate_json(text[start:end], strict=True)
    except ValidationError as e:
        raise _validation_error(e, text, end) from e

    if not config.allow_unknown_json_fields:
        unknown = _find_unknown_key(result, value)
        if unknown:
            raise JSONRequestError(
                JSONErrorKind.UNKNOWN_FIELD, f'request body contains unknown key "{unknown}"', field=unknown
            )
    return result


# ---------- encode ----------


def _json_default(obj: Any) -> Any:
    if isinstance(obj, JSONResponse):
        return obj.to_dict()
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(status: int, data: Any, headers: Mapping[str, str] | Headers | None = None) -> Response:
    """
    Сериализует data в JSON и собирает ответ.

    :param headers: Дополнительные заголовки; одноимённые заменяются целиком.
    :raises JSONEncodeError: если data не сериализуется (неизвестный тип, цикл).
    """
    try:
        out = json.dumps(data, default=_json_default, allow_nan=False)
    except (TypeError, ValueError) as e:
        app_logger.error("JSON encode failed: %s", e)
        raise JSONEncodeError(f"cannot encode response as JSON: {e}") from e

    response = Response(out, status=status)
    if headers:
        extra = Headers(headers)
        for key in extra.keys():
            response.headers.setlist(key, extra.getlist(key))
    response.headers["Content-Type"] = "application/json"
    return response


def error_json(err: BaseException | str, status: int = 400) -> Response:
    """Отдаёт ошибку в конверте {"error": true, "message": ...}."""
    return write_json(status, JSONResponse(error=True, message=str(err)))
