"""
Работа с файловой системой: создание каталогов и отдача статических файлов на скачивание.
"""

import os

from flask import Response, send_from_directory

from logger.logger import app_logger

DIR_MODE = 0o755


def create_dir_if_not_exist(path: str) -> None:
    """
    Создаёт каталог path вместе со всеми недостающими родителями.
    Если каталог уже есть — ничего не делает.
    :raises NotADirectoryError: если по пути лежит не каталог.
    """
    if os.path.isdir(path):
        return
    if os.path.exists(path):
        raise NotADirectoryError(f"{path} exists and is not a directory")
    os.makedirs(path, mode=DIR_MODE, exist_ok=True)
    app_logger.info("Создан каталог: %s", path)


def download_static_file(base_dir: str, file_name: str, display_name: str) -> Response:
    """
    Отдаёт файл base_dir/file_name и заставляет браузер скачать его, а не открыть.

    Range-запросы, определение mimetype и 404 на отсутствующий файл берёт на себя
    Flask (send_from_directory). Нужен активный request context.
    :param display_name: Имя файла, которое увидит пользователь.
    """
    response = send_from_directory(base_dir, file_name, as_attachment=True, download_name=display_name)
    response.headers["Content-Disposition"] = f'attachment; filename="{display_name}"'
    return response
