import heapq
import itertools
import random

import pytest

from tombola.game.registry import RoomRegistry
from tombola.game.service import GameService
from tombola.game.timers import TimerHandle
from tombola.server import create_app


class ManualTimers:
    """Deterministic stand-in for SocketIOTimers; time only moves on advance()."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay_sec, fn, *args):
        handle = TimerHandle()
        heapq.heappush(self._queue, (self.now + delay_sec, next(self._seq), handle, fn, args))
        return handle

    def advance(self, seconds):
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, fn, args = heapq.heappop(self._queue)
            self.now = due
            if not handle.cancelled:
                fn(*args)
        self.now = target

    @property
    def pending(self):
        return sum(1 for entry in self._queue if not entry[2].cancelled)


class Recorder:
    def __init__(self):
        self.events = []

    def __call__(self, event, data, room_code):
        self.events.append((event, data, room_code))

    def names(self):
        return [e[0] for e in self.events]

    def of(self, name):
        return [e for e in self.events if e[0] == name]

    def clear(self):
        self.events.clear()


class TestConfig:
    TESTING = True
    SECRET_KEY = "test-secret"
    CORS_ORIGINS = "*"
    TRUST_PROXY_HEADERS = False
    SOCKETIO_ASYNC_MODE = "threading"
    SOCKETIO_PATH = "socket.io"
    ROOM_CODE_LENGTH = 4
    MAX_NAME_LENGTH = 24
    MIN_PLAYERS = 2
    DEFAULT_DRAW_INTERVAL_MS = 3000
    MIN_DRAW_INTERVAL_MS = 3000
    MAX_DRAW_INTERVAL_MS = 15000
    AUTO_RESUME_SEC = 5
    REQUIRE_CARD_ON_DECLARE = False


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def service(timers, recorder):
    registry = RoomRegistry(rng=random.Random(7))
    return GameService(timers, recorder, registry, rng=random.Random(42))


@pytest.fixture()
def app_and_socketio(timers):
    return create_app(TestConfig, timers=timers)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(app_and_socketio):
    flask_app, socketio = app_and_socketio
    clients = []

    def _make():
        c = socketio.test_client(flask_app)
        clients.append(c)
        return c

    yield _make

    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
