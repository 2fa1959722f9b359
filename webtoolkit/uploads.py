"""Загрузка файлов из multipart-запроса.

Конвейер для каждой части запроса:
- читаем первые 512 байт и определяем тип по сигнатуре (libmagic), а не по имени;
- сверяем тип со списком разрешённых;
- выбираем имя на диске по политике переименования;
- копируем поток в файл и возвращаем метаданные (UploadedFile).
"""

from __future__ import annotations

import os
import re
from enum import Enum
from dataclasses import dataclass

import magic
from werkzeug import Request
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.datastructures import FileStorage

from logger.logger import app_logger

from webtoolkit.files import create_dir_if_not_exist
from webtoolkit.config import ToolkitConfig
from webtoolkit.errors import (
    UploadError,
    UploadIOError,
    NoFileUploadedError,
    UploadTooLargeError,
    FileTypeNotPermittedError,
)
from webtoolkit.strings import random_string

SNIFF_LEN = 512
RANDOM_NAME_LEN = 32
COPY_CHUNK = 64 * 1024

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9-]+")


class RenamePolicy(str, Enum):
    """Как назвать файл на диске."""

    KEEP_ORIGINAL = "keep_original"
    RANDOM_STRING = "random_string"
    NO_SPACES_RETAIN_CASE = "no_spaces_retain_case"
    NO_SPACES_LOWERCASE = "no_spaces_lowercase"

    @classmethod
    def parse(cls, value: RenamePolicy | str | None) -> RenamePolicy:
        """Неизвестные значения (и пустые) трактуются как KEEP_ORIGINAL."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.KEEP_ORIGINAL


@dataclass(frozen=True)
class UploadedFile:
    """Метаданные сохранённого файла."""

    new_file_name: str
    original_file_name: str
    file_size: int


def sniff_content_type(head: bytes) -> str:
    """Определяет MIME-тип по первым байтам содержимого."""
    return magic.from_buffer(head, mime=True)


def new_file_name(original: str, policy: RenamePolicy | str | None) -> str:
    """
    Вычисляет имя файла на диске. Расширение сохраняется как есть,
    преобразуется только базовое имя. Путь из имени клиента отбрасывается.
    """
    original = os.path.basename(original.replace("\\", "/"))
    name, ext = os.path.splitext(original)
    policy = RenamePolicy.parse(policy)

    if policy is RenamePolicy.NO_SPACES_RETAIN_CASE:
        return _UNSAFE_NAME_CHARS.sub("_", name).strip("_") + ext
    if policy is RenamePolicy.NO_SPACES_LOWERCASE:
        return _UNSAFE_NAME_CHARS.sub("_", name.lower()).strip("_") + ext
    if policy is RenamePolicy.RANDOM_STRING:
        return random_string(RANDOM_NAME_LEN) + ext
    return original


def _iter_parts(req: Request):
    """Части в порядке полей формы, затем в порядке внутри поля."""
    for _field, parts in req.files.lists():
        for part in parts:
            if part and part.filename:
                yield part


def _save_part(part: FileStorage, upload_dir: str, config: ToolkitConfig, rename: RenamePolicy) -> UploadedFile:
    stream = part.stream
    head = stream.read(SNIFF_LEN)
    file_type = sniff_content_type(head)
    if not config.is_type_allowed(file_type):
        app_logger.warning("Rejected upload %s: type %s is not permitted", part.filename, file_type)
        raise FileTypeNotPermittedError("the uploaded file type is not permitted")

    stream.seek(0)
    stored_name = new_file_name(part.filename, rename)
    destination = os.path.join(upload_dir, stored_name)

    size = 0
    with open(destination, "wb") as out:
        while True:
            chunk = stream.read(COPY_CHUNK)
            if not chunk:
                break
            out.write(chunk)
            size += len(chunk)

    return UploadedFile(new_file_name=stored_name, original_file_name=part.filename, file_size=size)


def upload_files(
    req: Request,
    upload_dir: str,
    rename: RenamePolicy | str | None = RenamePolicy.KEEP_ORIGINAL,
    *,
    config: ToolkitConfig | None = None,
) -> list[UploadedFile]:
    """
    Сохраняет все файлы из multipart-запроса в upload_dir.

    :param rename: Политика переименования (см. RenamePolicy).
    :return: Список UploadedFile в порядке обработки.
    :raises UploadError: при любой ошибке; в ``err.uploaded`` — файлы, уже
        записанные до неё (они не удаляются).
    """
    config = config or ToolkitConfig()
    rename = RenamePolicy.parse(rename)

    try:
        create_dir_if_not_exist(upload_dir)
    except OSError as e:
        raise UploadIOError(f"cannot create upload directory: {e}") from e

    limit = config.max_upload_bytes
    if req.content_length is not None and req.content_length > limit:
        raise UploadTooLargeError("uploaded file exceeds allowed maximum file size")
    if req.max_content_length is None or req.max_content_length > limit:
        req.max_content_length = limit
    try:
        parts = list(_iter_parts(req))
    except RequestEntityTooLarge as e:
        raise UploadTooLargeError("uploaded file exceeds allowed maximum file size") from e

    uploaded: list[UploadedFile] = []
    try:
        for part in parts:
            try:
                uploaded.append(_save_part(part, upload_dir, config, rename))
            except UploadError as e:
                e.uploaded = list(uploaded)
                raise
            except OSError as e:
                app_logger.error("Ошибка при сохранении %s: %s", part.filename, e)
                raise UploadIOError(f"error saving {part.filename}: {e}", uploaded) from e
    finally:
        # закрываем и необработанные части, если цикл прервался
        for part in parts:
            part.close()

    app_logger.info("Saved %d file(s) to %s", len(uploaded), upload_dir)
    return uploaded


def upload_one_file(
    req: Request,
    upload_dir: str,
    rename: RenamePolicy | str | None = RenamePolicy.KEEP_ORIGINAL,
    *,
    config: ToolkitConfig | None = None,
) -> UploadedFile:
    """Как upload_files, но возвращает только первый файл."""
    files = upload_files(req, upload_dir, rename, config=config)
    if not files:
        raise NoFileUploadedError("no file found in request")
    return files[0]
