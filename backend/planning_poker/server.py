from __future__ import annotations

import os
import sys

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .audit import make_audit_sink
from .config import Config
from .game.cards import parse_card_list
from .game.session import SessionEngine
from .realtime.commands import build_commands
from .realtime.dispatcher import CapabilityDispatcher
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.session import bp as session_bp


def _default_async_mode() -> str:
    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if env_async_mode:
        return env_async_mode
    # Default choice:
    # - Windows: threading (eventlet has known compatibility issues on newer Python)
    # - Python >= 3.13: threading (safer default)
    # - Otherwise: eventlet
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(config_class=Config) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE") or _default_async_mode(),
    )

    def transport(sid: str, frame: str) -> None:
        socketio.send(frame, to=sid)

    def is_open(sid: str) -> bool:
        return socketio.server.manager.is_connected(sid, "/")

    engine = SessionEngine(
        app.config["ADMIN_PASSWORD"],
        transport,
        name=app.config["SESSION_NAME"],
        cards=parse_card_list(app.config["DEFAULT_CARDS"]),
        flip_delay=app.config["FLIP_DELAY_SEC"],
        is_open=is_open,
        spawn=socketio.start_background_task,
        sleep=socketio.sleep,
        audit=make_audit_sink(app.config.get("AUDIT_LOG_DIR", "")),
    )
    dispatcher = CapabilityDispatcher(
        engine,
        build_commands(),
        report_unknown=app.config.get("REPORT_UNKNOWN_COMMANDS", True),
    )
    app.extensions["planning_poker"] = engine

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(session_bp, url_prefix="/api")

    register_socketio_handlers(socketio, dispatcher)

    return app, socketio
