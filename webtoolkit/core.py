"""Toolkit — фасад, который держит конфиг и пробрасывает его в функции модулей."""

from __future__ import annotations

from typing import Any
from collections.abc import Mapping

import requests
from flask import Response
from werkzeug import Request

from webtoolkit import files, jsonio, remote, strings, uploads
from webtoolkit.config import ToolkitConfig
from webtoolkit.uploads import RenamePolicy, UploadedFile


class Toolkit:
    """Набор утилит для веб-бэкенда с общей конфигурацией."""

    def __init__(self, config: ToolkitConfig | None = None, **overrides: Any) -> None:
        """
        :param config: Готовый ToolkitConfig; по умолчанию — значения по умолчанию.
        :param overrides: Поля ToolkitConfig, например ``max_json_bytes=4096``.
        """
        if config is not None and overrides:
            raise TypeError("pass either config or keyword overrides, not both")
        self.config = config or ToolkitConfig(**overrides)

    @staticmethod
    def random_string(n: int) -> str:
        return strings.random_string(n)

    @staticmethod
    def slugify(text: str) -> str:
        return strings.slugify(text)

    @staticmethod
    def create_dir_if_not_exist(path: str) -> None:
        files.create_dir_if_not_exist(path)

    @staticmethod
    def download_static_file(base_dir: str, file_name: str, display_name: str) -> Response:
        return files.download_static_file(base_dir, file_name, display_name)

    def upload_files(
        self, req: Request, upload_dir: str, rename: RenamePolicy | str | None = RenamePolicy.KEEP_ORIGINAL
    ) -> list[UploadedFile]:
        return uploads.upload_files(req, upload_dir, rename, config=self.config)

    def upload_one_file(
        self, req: Request, upload_dir: str, rename: RenamePolicy | str | None = RenamePolicy.KEEP_ORIGINAL
    ) -> UploadedFile:
        return uploads.upload_one_file(req, upload_dir, rename, config=self.config)

    def read_json(self, req: Request, target: Any = None) -> Any:
        return jsonio.read_json(req, target, config=self.config)

    @staticmethod
    def write_json(status: int, data: Any, headers: Mapping[str, str] | None = None) -> Response:
        return jsonio.write_json(status, data, headers)

    @staticmethod
    def error_json(err: BaseException | str, status: int = 400) -> Response:
        return jsonio.error_json(err, status)

    @staticmethod
    def push_json_to_remote(
        uri: str, data: Any, session: requests.Session | None = None
    ) -> tuple[requests.Response, int]:
        return remote.push_json_to_remote(uri, data, session)
