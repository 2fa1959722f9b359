"""webtoolkit — утилиты для веб-бэкенда на Flask/Werkzeug.

Содержит подмодули:
- config: ToolkitConfig (лимиты, разрешённые типы, строгий JSON)
- core: Toolkit — фасад с общей конфигурацией
- errors: иерархия исключений
- files: создание каталогов, отдача файлов на скачивание
- http: обработчики ошибок Flask в JSON-конверте
- jsonio: строгий разбор JSON-запросов и JSON-ответы
- remote: POST JSON во внешний сервис
- strings: случайные строки и slug'и
- uploads: загрузка файлов из multipart-запроса
"""

from .core import Toolkit
from .config import ToolkitConfig
from .errors import ToolkitError, JSONErrorKind, JSONRequestError
from .jsonio import JSONResponse
from .uploads import RenamePolicy, UploadedFile

__all__ = [
    "JSONErrorKind",
    "JSONRequestError",
    "JSONResponse",
    "RenamePolicy",
    "Toolkit",
    "ToolkitConfig",
    "ToolkitError",
    "UploadedFile",
]
