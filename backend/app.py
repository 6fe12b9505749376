import logging
import os

import sys

from pathlib import Path

from dotenv import load_dotenv


def main() -> None:
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if (
        not sys.platform.startswith("win")
        and sys.version_info < (3, 13)
        and env_async_mode in ("", "eventlet")
    ):
        import eventlet

        eventlet.monkey_patch()

    try:
        from backend.planning_poker.config import Config, SessionConfigError, validate_config
        from backend.planning_poker.server import create_app
    except ImportError:  # pragma: no cover
        from planning_poker.config import Config, SessionConfigError, validate_config
        from planning_poker.server import create_app

    try:
        validate_config(Config.SESSION_NAME, Config.PORT, Config.ADMIN_PASSWORD)
    except SessionConfigError as exc:
        sys.exit(str(exc))

    app, socketio = create_app()
    logging.getLogger(__name__).info(
        "Planning poker session %r listening on port %d", Config.SESSION_NAME, Config.PORT
    )

    debug = os.environ.get("FLASK_DEBUG", "0") == "1"

    allow_unsafe_werkzeug = os.environ.get("ALLOW_UNSAFE_WERKZEUG", "1") == "1"
    use_reloader = os.environ.get("FLASK_USE_RELOADER", "0") == "1"

    socketio.run(
        app,
        host=Config.HOST,
        port=Config.PORT,
        debug=debug,
        allow_unsafe_werkzeug=allow_unsafe_werkzeug,
        use_reloader=use_reloader,
    )


if __name__ == "__main__":
    main()
