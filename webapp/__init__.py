# webapp/__init__.py
import json
import logging
import time
from collections.abc import Mapping, Sequence
from uuid import uuid4

from flask import Flask, g, request
from sqlalchemy.engine import make_url

from .extensions import db, api as smorest_api
from core.db_log_handler import DBLogHandler
from core.logging_config import ensure_appdb_file_logging
from core.settings import settings
from core.time import utc_now_isoformat


_MAX_LOG_PAYLOAD_BYTES = 60_000

_MAX_LOG_LIST_ITEMS = 20

# Package loggers whose records are persisted alongside ``app.logger``.
_STRUCTURED_LOGGER_ROOTS = ("application", "infrastructure")


def _summarize_payload(data):
    """ログ出力用に長いリストを切り詰める。"""

    if isinstance(data, Mapping):
        return {key: _summarize_payload(value) for key, value in data.items()}
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
        items = [_summarize_payload(item) for item in data[:_MAX_LOG_LIST_ITEMS]]
        if len(data) > _MAX_LOG_LIST_ITEMS:
            items.append(f"... ({len(data) - _MAX_LOG_LIST_ITEMS} more)")
        return items
    return data


def _prepare_log_payload(payload):
    serialized = json.dumps(_summarize_payload(payload), ensure_ascii=False, default=str)
    if len(serialized.encode("utf-8")) > _MAX_LOG_PAYLOAD_BYTES:
        serialized = json.dumps(
            {"truncated": True, "keys": sorted(payload)},
            ensure_ascii=False,
        )
    return serialized


def _should_bind_db_handlers(app: Flask) -> bool:
    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI")
    if not database_uri:
        return True
    try:
        url = make_url(database_uri)
    except Exception:  # pragma: no cover - invalid URI should not block logging
        return True
    return not (url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"))


def _configure_logging(app: Flask) -> None:
    if not settings.db_logging_enabled:
        if app.logger.level == logging.NOTSET:
            app.logger.setLevel(logging.INFO)
        return

    ensure_appdb_file_logging(app.logger, app)
    for name in _STRUCTURED_LOGGER_ROOTS:
        ensure_appdb_file_logging(logging.getLogger(name), app)

    if _should_bind_db_handlers(app):
        for logger in (app.logger, *(logging.getLogger(n) for n in _STRUCTURED_LOGGER_ROOTS)):
            for handler in logger.handlers:
                if isinstance(handler, DBLogHandler):
                    handler.bind_to_app(app)

    # デバッグモードでは詳細ログを有効化
    if app.debug:
        app.logger.setLevel(logging.DEBUG)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        app.logger.addHandler(console_handler)
    else:
        app.logger.setLevel(logging.INFO)


def create_app(config_object=None):
    """アプリケーションファクトリ"""
    from dotenv import load_dotenv
    from .config import Config

    # .env を読み込む（環境変数が未設定の場合のみ）
    load_dotenv()

    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.setdefault("API_TITLE", "local image provider API")
    app.config.setdefault("API_VERSION", "1.0.0")
    app.config.setdefault("OPENAPI_VERSION", "3.0.3")
    app.config.setdefault("OPENAPI_URL_PREFIX", "/api")
    app.config.setdefault("OPENAPI_JSON_PATH", "openapi.json")
    app.config.setdefault("API_SPEC_OPTIONS", {})

    # 拡張初期化
    db.init_app(app)
    smorest_api.init_app(app)

    with app.app_context():
        _configure_logging(app)

    # モデル import（create_all 用に認識させる）
    from core import models as _models  # noqa: F401

    # Blueprint 登録
    from .api import bp as api_bp
    smorest_api.register_blueprint(api_bp, url_prefix="/api")

    from .error_handlers import register_error_handlers
    register_error_handlers(app)

    # CLI コマンド登録
    from .cli import register_cli_commands
    register_cli_commands(app)

    @app.before_request
    def start_timer():
        g.start_time = time.perf_counter()

    @app.before_request
    def log_api_request():
        if request.path.startswith("/api"):
            req_id = str(uuid4())
            g.request_id = req_id
            input_json = request.get_json(silent=True)

            log_dict = {"method": request.method}
            args_dict = request.args.to_dict()
            if args_dict:
                log_dict["args"] = args_dict
            if input_json is not None:
                log_dict["json"] = input_json
            app.logger.info(
                _prepare_log_payload(log_dict),
                extra={
                    "event": "api.input",
                    "request_id": req_id,
                    "path": request.path,
                },
            )

    @app.after_request
    def log_api_response(response):
        if request.path.startswith("/api"):
            base_payload = {"status": response.status_code, "mimetype": response.mimetype}
            if response.mimetype == "application/json":
                base_payload["json"] = response.get_json(silent=True)
            else:
                base_payload["bytes"] = response.calculate_content_length()
            log_extra = {
                "event": "api.output",
                "request_id": getattr(g, "request_id", None),
                "path": request.path,
            }
            if response.status_code >= 400:
                app.logger.warning(_prepare_log_payload(base_payload), extra=log_extra)
            else:
                app.logger.info(_prepare_log_payload(base_payload), extra=log_extra)
        return response

    @app.after_request
    def add_server_timing(response):
        start = getattr(g, "start_time", None)
        if start is not None:
            duration = (time.perf_counter() - start) * 1000
            response.headers["Server-Timing"] = f"app;dur={duration:.2f}"
        response.headers["X-Server-Time"] = utc_now_isoformat()
        return response

    # マイグレーションを持たないため起動時にテーブルを作成する
    with app.app_context():
        db.create_all()

    return app
