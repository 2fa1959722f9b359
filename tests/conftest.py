"""Фикстуры и утилиты для тестов webtoolkit и демо-приложения."""

from __future__ import annotations

import io
import base64
import tempfile
from os import path, environ

import pytest

# ВАЖНО: эти переменные должны быть установлены до импорта приложения.
_TMP_ROOT = tempfile.mkdtemp(prefix="webtoolkit_tests_")
environ.setdefault("LOG_DIR", path.join(_TMP_ROOT, "logs"))
environ.setdefault("UPLOAD_DIR", path.join(_TMP_ROOT, "uploads"))
environ.setdefault("STATIC_DIR", path.join(_TMP_ROOT, "static"))

import app as app_module  # pylint: disable=wrong-import-position

# 1×1 PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
TEXT_BYTES = b"just some plain text, nothing to see here\n" * 4


@pytest.fixture(scope="session")
def flask_app():
    """Flask app демо-сервиса в режиме testing."""
    app_module.app.testing = True
    return app_module.app


@pytest.fixture()
def client(flask_app):  # pylint: disable=redefined-outer-name
    """Возвращает тестовый клиент Flask для каждого теста."""
    return flask_app.test_client()


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    """Подменяет UPLOAD_DIR демо-приложения на свежий tmp-каталог."""
    target = tmp_path / "uploads"
    monkeypatch.setattr(app_module, "UPLOAD_DIR", str(target))
    return target


def file_part(name: str, payload: bytes = PNG_BYTES, content_type: str = "application/octet-stream"):
    """Кортеж (stream, filename, content_type) для поля формы тестового клиента."""
    return io.BytesIO(payload), name, content_type
