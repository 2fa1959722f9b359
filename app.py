"""Демо Flask-приложение поверх webtoolkit: загрузка, скачивание, JSON-эндпоинты."""

import os

from flask_compress import Compress
from werkzeug.middleware.proxy_fix import ProxyFix
from flask import Flask, request

from app_version import __version__

from logger.logger import app_logger, user_logger

from webtoolkit import Toolkit, ToolkitConfig, ToolkitError
from webtoolkit.http import handle_413, handle_toolkit_error
from webtoolkit.jsonio import JSONResponse
from webtoolkit.uploads import RenamePolicy

app = Flask(__name__)
Compress(app)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

# ---- Config / constants ----
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(100 * 1024 * 1024)))
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH

UPLOAD_DIR = os.path.abspath(os.getenv("UPLOAD_DIR", "./uploads"))
STATIC_DIR = os.path.abspath(os.getenv("STATIC_DIR", "./static"))

toolkit = Toolkit(ToolkitConfig.from_env())

# ---- Errors ----
app.register_error_handler(413, handle_413(MAX_CONTENT_LENGTH))
app.register_error_handler(ToolkitError, handle_toolkit_error)


def _user_event(message: str, **fields) -> None:
    """Пишет событие в user_logger, если он включён."""
    if user_logger:
        user_logger.info(message, extra={"extra": {"ip": request.remote_addr or "unknown", **fields}})


# ---- Routes ----
@app.route("/healthz")
def healthz():
    """Проверка живости и текущие лимиты."""
    cfg = toolkit.config
    return toolkit.write_json(
        200,
        JSONResponse(
            message="ok",
            data={
                "version": __version__,
                "max_upload_bytes": cfg.max_upload_bytes,
                "max_json_bytes": cfg.max_json_bytes,
                "allowed_file_types": sorted(cfg.allowed_file_types),
            },
        ),
    )


@app.route("/upload", methods=["POST"])
def upload():
    """POST /upload?rename=<policy>: сохраняет все файлы запроса в UPLOAD_DIR."""
    rename = RenamePolicy.parse(request.args.get("rename"))
    saved = toolkit.upload_files(request, UPLOAD_DIR, rename)
    _user_event("upload", files=len(saved), rename=rename.value, status="success")
    return toolkit.write_json(201, JSONResponse(message=f"{len(saved)} file(s) uploaded", data=saved))


@app.route("/upload-one", methods=["POST"])
def upload_one():
    """POST /upload-one?rename=<policy>: сохраняет только первый файл запроса."""
    saved = toolkit.upload_one_file(request, UPLOAD_DIR, request.args.get("rename"))
    _user_event("upload_one", file=saved.new_file_name, size=saved.file_size, status="success")
    return toolkit.write_json(201, JSONResponse(message="file uploaded", data=saved))


@app.route("/download/<path:file_name>")
def download(file_name: str):
    """GET /download/<file>?name=<display>: отдаёт файл из STATIC_DIR как вложение."""
    display_name = request.args.get("name") or os.path.basename(file_name)
    _user_event("download", file=file_name)
    return toolkit.download_static_file(STATIC_DIR, file_name, display_name)


@app.route("/api/echo", methods=["POST"])
def echo():
    """POST /api/echo: возвращает присланное JSON-значение в конверте."""
    payload = toolkit.read_json(request)
    return toolkit.write_json(200, JSONResponse(message="received", data=payload))


@app.route("/api/slug", methods=["POST"])
def slug():
    """POST /api/slug {"text": "..."}: возвращает slug."""
    payload = toolkit.read_json(request, dict[str, str])
    return toolkit.write_json(200, JSONResponse(message="ok", data={"slug": toolkit.slugify(payload.get("text", ""))}))


@app.route("/api/random/<int:length>")
def random_value(length: int):
    """GET /api/random/<n>: случайная строка длины n (не больше 4096)."""
    if length > 4096:
        return toolkit.error_json("length must be <= 4096")
    return toolkit.write_json(200, JSONResponse(message="ok", data={"value": toolkit.random_string(length)}))


if __name__ == "__main__":
    app_logger.info("Starting webtoolkit demo %s", __version__)
    port = int(os.environ.get("PORT", "5001"))
    app.run(host="0.0.0.0", port=port, debug=True)
