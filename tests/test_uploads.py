"""Тесты для webtoolkit.uploads.

Покрываем:
- вычисление имени файла по политике переименования;
- определение типа по содержимому;
- upload_files(): сохранение, фильтр типов, лимит размера, частичные результаты;
- upload_one_file().
"""

import pytest
from flask import Flask, request

from webtoolkit import uploads
from webtoolkit.config import ToolkitConfig
from webtoolkit.errors import (
    UploadError,
    UploadIOError,
    NoFileUploadedError,
    UploadTooLargeError,
    FileTypeNotPermittedError,
)
from webtoolkit.strings import RANDOM_STRING_SOURCE

from tests.conftest import PNG_BYTES, TEXT_BYTES, file_part


def _ctx(data):
    """Request context с multipart-телом."""
    app = Flask(__name__)
    return app.test_request_context("/", method="POST", data=data, content_type="multipart/form-data")


# ---------- new_file_name ----------


@pytest.mark.parametrize(
    "original,policy,expected",
    [
        ("My Photo (1).PNG", uploads.RenamePolicy.KEEP_ORIGINAL, "My Photo (1).PNG"),
        ("My Photo (1).PNG", uploads.RenamePolicy.NO_SPACES_RETAIN_CASE, "My_Photo_1.PNG"),
        ("My Photo (1).PNG", uploads.RenamePolicy.NO_SPACES_LOWERCASE, "my_photo_1.PNG"),
        ("  spaced-out  name .txt", "no_spaces_retain_case", "spaced-out_name.txt"),
        ("My Photo.png", "something-else", "My Photo.png"),
        ("My Photo.png", None, "My Photo.png"),
        ("../../etc/passwd", uploads.RenamePolicy.KEEP_ORIGINAL, "passwd"),
        ("C:\\Users\\me\\a.png", uploads.RenamePolicy.KEEP_ORIGINAL, "a.png"),
    ],
)
def test_new_file_name(original, policy, expected):
    assert uploads.new_file_name(original, policy) == expected


def test_new_file_name_random_keeps_extension():
    name = uploads.new_file_name("holiday.jpeg", uploads.RenamePolicy.RANDOM_STRING)
    base, ext = name[: -len(".jpeg")], name[-len(".jpeg") :]
    assert ext == ".jpeg"
    assert len(base) == uploads.RANDOM_NAME_LEN
    assert set(base) <= set(RANDOM_STRING_SOURCE)


def test_rename_policy_parse_fallback():
    assert uploads.RenamePolicy.parse("random_string") is uploads.RenamePolicy.RANDOM_STRING
    assert uploads.RenamePolicy.parse("nope") is uploads.RenamePolicy.KEEP_ORIGINAL
    assert uploads.RenamePolicy.parse("") is uploads.RenamePolicy.KEEP_ORIGINAL


# ---------- sniff_content_type ----------


def test_sniff_png():
    assert uploads.sniff_content_type(PNG_BYTES) == "image/png"


def test_sniff_text():
    assert uploads.sniff_content_type(TEXT_BYTES) == "text/plain"


# ---------- upload_files ----------


def test_upload_allowed_type_keep_original(tmp_path):
    """Разрешённый тип + KEEP_ORIGINAL: файл лежит под исходным именем, байты совпадают."""
    cfg = ToolkitConfig(allowed_file_types=frozenset({"IMAGE/PNG"}))
    with _ctx({"file": file_part("pixel.png")}):
        saved = uploads.upload_files(request, str(tmp_path / "up"), config=cfg)

    assert saved == [uploads.UploadedFile("pixel.png", "pixel.png", len(PNG_BYTES))]
    assert (tmp_path / "up" / "pixel.png").read_bytes() == PNG_BYTES


def test_upload_disallowed_type_writes_nothing(tmp_path):
    cfg = ToolkitConfig(allowed_file_types=frozenset({"image/png"}))
    with _ctx({"file": file_part("notes.txt", TEXT_BYTES)}):
        with pytest.raises(FileTypeNotPermittedError) as exc:
            uploads.upload_files(request, str(tmp_path), config=cfg)

    assert str(exc.value) == "the uploaded file type is not permitted"
    assert not (tmp_path / "notes.txt").exists()


def test_upload_all_types_allowed_when_empty(tmp_path):
    with _ctx({"file": file_part("notes.txt", TEXT_BYTES)}):
        saved = uploads.upload_files(request, str(tmp_path))
    assert saved[0].file_size == len(TEXT_BYTES)
    assert (tmp_path / "notes.txt").read_bytes() == TEXT_BYTES


def test_upload_preserves_sniffed_bytes_for_large_files(tmp_path):
    """Первые 512 байт, прочитанные для определения типа, попадают в файл."""
    payload = PNG_BYTES + bytes(range(256)) * 600
    with _ctx({"file": file_part("big.png", payload)}):
        saved = uploads.upload_files(request, str(tmp_path))
    assert saved[0].file_size == len(payload)
    assert (tmp_path / "big.png").read_bytes() == payload


def test_upload_order_fields_then_parts(tmp_path):
    data = {
        "first": [file_part("a.png"), file_part("b.png")],
        "second": file_part("c.png"),
    }
    with _ctx(data):
        saved = uploads.upload_files(request, str(tmp_path))
    assert [f.original_file_name for f in saved] == ["a.png", "b.png", "c.png"]


def test_upload_random_names(tmp_path):
    with _ctx({"files": [file_part("a.png"), file_part("b.png")]}):
        saved = uploads.upload_files(request, str(tmp_path), uploads.RenamePolicy.RANDOM_STRING)

    names = [f.new_file_name for f in saved]
    assert len(set(names)) == 2
    for f in saved:
        assert f.new_file_name.endswith(".png")
        assert f.new_file_name != f.original_file_name
        assert (tmp_path / f.new_file_name).exists()


def test_upload_creates_missing_directory(tmp_path):
    target = tmp_path / "deep" / "er"
    with _ctx({"file": file_part("a.png")}):
        uploads.upload_files(request, str(target))
    assert (target / "a.png").exists()


def test_upload_too_large(tmp_path):
    cfg = ToolkitConfig(max_upload_bytes=100)
    with _ctx({"file": file_part("big.png", PNG_BYTES * 10)}):
        with pytest.raises(UploadTooLargeError):
            uploads.upload_files(request, str(tmp_path), config=cfg)
    assert list(tmp_path.iterdir()) == []


def test_upload_partial_results_on_later_failure(tmp_path):
    """Ошибка на второй части: первая уже записана и возвращается в err.uploaded."""
    cfg = ToolkitConfig(allowed_file_types=frozenset({"image/png"}))
    with _ctx({"files": [file_part("ok.png"), file_part("bad.txt", TEXT_BYTES)]}):
        with pytest.raises(UploadError) as exc:
            uploads.upload_files(request, str(tmp_path), config=cfg)

    assert [f.new_file_name for f in exc.value.uploaded] == ["ok.png"]
    assert (tmp_path / "ok.png").exists()
    assert not (tmp_path / "bad.txt").exists()


def test_upload_io_error_wrapped(tmp_path, monkeypatch):
    def boom(*_a, **_k):
        raise OSError("disk full")

    monkeypatch.setattr(uploads, "open", boom, raising=False)
    with _ctx({"file": file_part("a.png")}):
        with pytest.raises(UploadIOError) as exc:
            uploads.upload_files(request, str(tmp_path))
    assert "disk full" in str(exc.value)
    assert exc.value.uploaded == []


def test_upload_skips_empty_file_fields(tmp_path):
    with _ctx({"file": file_part("", b"")}):
        assert uploads.upload_files(request, str(tmp_path)) == []


# ---------- upload_one_file ----------


def test_upload_one_file_returns_first(tmp_path):
    with _ctx({"files": [file_part("a.png"), file_part("b.png")]}):
        saved = uploads.upload_one_file(request, str(tmp_path))
    assert saved.original_file_name == "a.png"


def test_upload_one_file_without_files(tmp_path):
    with _ctx({"name": "value"}):
        with pytest.raises(NoFileUploadedError):
            uploads.upload_one_file(request, str(tmp_path))
