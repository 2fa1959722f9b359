"""Конфигурация toolkit: лимиты, допустимые типы файлов, режим строгого JSON.

Все значения по умолчанию подставляются при создании объекта, а не при первом
вызове, поэтому один экземпляр можно безопасно использовать из разных потоков.
"""

from __future__ import annotations

import os
from dataclasses import field, dataclass

DEFAULT_MAX_UPLOAD_BYTES = 1024 * 1024 * 1024
DEFAULT_MAX_JSON_BYTES = 1024 * 1024


def _bool(value: str | None, default: bool) -> bool:
    """Читает булево значение: '1,true,yes,y,on' → True, иначе False."""
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "y", "on")


def _int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


@dataclass(frozen=True)
class ToolkitConfig:
    """Неизменяемый снимок настроек.

    Attributes:
        allowed_file_types: MIME-типы, разрешённые к загрузке; пустое множество — разрешено всё.
        max_upload_bytes: Лимит на всё multipart-тело запроса (по умолчанию 1 GiB).
        max_json_bytes: Лимит на JSON-тело запроса (по умолчанию 1 MiB).
        allow_unknown_json_fields: Разрешать ли неизвестные ключи в JSON.
    """

    allowed_file_types: frozenset[str] = field(default_factory=frozenset)
    max_upload_bytes: int | None = None
    max_json_bytes: int | None = None
    allow_unknown_json_fields: bool = False

    def __post_init__(self) -> None:
        types = frozenset(t.strip().lower() for t in (self.allowed_file_types or ()) if t and t.strip())
        object.__setattr__(self, "allowed_file_types", types)

        for name, default in (
            ("max_upload_bytes", DEFAULT_MAX_UPLOAD_BYTES),
            ("max_json_bytes", DEFAULT_MAX_JSON_BYTES),
        ):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
            if not value:
                object.__setattr__(self, name, default)

    @classmethod
    def from_env(cls, prefix: str = "TOOLKIT_", environ: dict[str, str] | None = None) -> ToolkitConfig:
        """Собирает конфиг из переменных окружения.

        - ``{prefix}ALLOWED_FILE_TYPES`` — список через запятую;
        - ``{prefix}MAX_UPLOAD_BYTES`` / ``{prefix}MAX_JSON_BYTES`` — целые числа;
        - ``{prefix}ALLOW_UNKNOWN_JSON_FIELDS`` — булев флаг.
        """
        env = os.environ if environ is None else environ
        raw_types = env.get(f"{prefix}ALLOWED_FILE_TYPES", "")
        return cls(
            allowed_file_types=frozenset(raw_types.split(",")),
            max_upload_bytes=_int(env.get(f"{prefix}MAX_UPLOAD_BYTES")),
            max_json_bytes=_int(env.get(f"{prefix}MAX_JSON_BYTES")),
            allow_unknown_json_fields=_bool(env.get(f"{prefix}ALLOW_UNKNOWN_JSON_FIELDS"), False),
        )

    def is_type_allowed(self, mime_type: str) -> bool:
        """True, если тип разрешён (регистр не учитывается)."""
        if not self.allowed_file_types:
            return True
        return mime_type.strip().lower() in self.allowed_file_types
