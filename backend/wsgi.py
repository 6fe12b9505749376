try:
    from backend.planning_poker.server import create_app
except ImportError:  # pragma: no cover
    from planning_poker.server import create_app

app, socketio = create_app()
