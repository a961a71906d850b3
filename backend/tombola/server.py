from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.service import GameService
from .game.timers import SocketIOTimers, Timers
from .realtime.handlers import register_socketio_handlers
from .routes.cards import bp as cards_bp
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp

logger = logging.getLogger(__name__)


def _default_async_mode(configured: str) -> str:
    if configured:
        return configured
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(config_class: Any = Config, timers: Timers | None = None) -> tuple[Flask, SocketIO]:
    dist_dir = Path(__file__).resolve().parents[2] / "frontend" / "dist"

    static_folder = str(dist_dir) if dist_dir.exists() else None
    static_url_path = "/" if dist_dir.exists() else None

    app = Flask(
        __name__,
        static_folder=static_folder,
        static_url_path=static_url_path,
    )
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    async_mode = _default_async_mode(app.config.get("SOCKETIO_ASYNC_MODE", ""))

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode,
        path=app.config.get("SOCKETIO_PATH", "socket.io"),
    )

    def _emit(event: str, data: Any, room_code: str) -> None:
        if data is None:
            socketio.emit(event, to=room_code)
        else:
            socketio.emit(event, data, to=room_code)

    service = GameService.from_config(app.config, timers or SocketIOTimers(socketio), _emit)
    app.extensions["tombola"] = service

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    app.register_blueprint(cards_bp, url_prefix="/api")

    register_socketio_handlers(socketio, service)
    logger.info("[app] async_mode=%s", async_mode)

    if dist_dir.exists():
        @app.get("/")
        def index():
            return send_from_directory(dist_dir, "index.html")

        @app.get("/<path:path>")
        def static_proxy(path: str):
            file_path = dist_dir / path
            if file_path.exists() and file_path.is_file():
                return send_from_directory(dist_dir, path)
            return send_from_directory(dist_dir, "index.html")

    return app, socketio
