import json

import pytest

from planning_poker.config import Config
from planning_poker.game.session import SessionEngine
from planning_poker.realtime.commands import build_commands
from planning_poker.realtime.dispatcher import CapabilityDispatcher
from planning_poker.server import create_app


ADMIN_PASSWORD = "secret"


class RecordingTransport:
    """Stands in for the socket layer and keeps every frame it was given."""

    def __init__(self):
        self.frames = []

    def __call__(self, sid, frame):
        self.frames.append((sid, json.loads(frame)))

    def to(self, sid):
        return [f for s, f in self.frames if s == sid]

    def commands(self, sid):
        return [f.get("Command") for f in self.to(sid) if not f["Error"]]

    def errors(self, sid):
        return [f for f in self.to(sid) if f["Error"]]

    def last(self, sid, command):
        for f in reversed(self.to(sid)):
            if f.get("Command") == command:
                return f
        return None

    def clear(self):
        self.frames = []


class ManualScheduler:
    """Captures deferred work so a test decides when the timer fires."""

    def __init__(self):
        self.pending = []
        self.slept = []

    def spawn(self, fn, *args):
        self.pending.append((fn, args))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_pending(self):
        pending, self.pending = self.pending, []
        for fn, args in pending:
            fn(*args)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    TRUST_PROXY_HEADERS = False
    SESSION_NAME = "test-session"
    PORT = 5555
    ADMIN_PASSWORD = ADMIN_PASSWORD
    FLIP_DELAY_SEC = 0.05
    AUDIT_LOG_DIR = ""
    REPORT_UNKNOWN_COMMANDS = True
    SOCKETIO_ASYNC_MODE = "threading"


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def engine(transport, scheduler):
    return SessionEngine(
        ADMIN_PASSWORD,
        transport,
        name="test-session",
        spawn=scheduler.spawn,
        sleep=scheduler.sleep,
    )


@pytest.fixture()
def dispatcher(engine):
    return CapabilityDispatcher(engine, build_commands())


@pytest.fixture()
def call(dispatcher):
    def _call(client, method, *args):
        frame = json.dumps({"MethodName": method, "MethodArguments": list(args)})
        return dispatcher.dispatch(client, frame)

    return _call


@pytest.fixture()
def join(engine):
    counter = {"n": 0}

    def _join(name, spectator=False, admin=False):
        counter["n"] += 1
        client = engine.connect(f"sid-{counter['n']}")
        engine.register_client(client, name, spectator)
        if admin:
            assert engine.register_admin(client, ADMIN_PASSWORD)
        return client

    return _join


@pytest.fixture()
def server():
    app, socketio = create_app(TestConfig)
    yield app, socketio


@pytest.fixture()
def http_client(server):
    app, _ = server
    return app.test_client()


@pytest.fixture()
def sio_factory(server):
    app, socketio = server
    clients = []

    def _make():
        c = socketio.test_client(app, flask_test_client=app.test_client())
        clients.append(c)
        return c

    yield _make

    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
