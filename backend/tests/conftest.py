import heapq
import itertools
import os
import random
import sys
import pytest

# Ensure the backend root (containing the `redlight` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from redlight import create_app, socketio
from redlight.models import RoundConfig, RoundKind
from redlight.services.game import GameEngine, RoundCatalog
from redlight.services.game.gateway import BroadcastGateway


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    PROGRESS_TO_WIN = 100
    PROGRESS_TICK_MS = 100
    TIME_TICK_SEC = 1
    COUNTDOWN_FROM = 3
    COUNTDOWN_STEP_SEC = 1
    MAX_NAME_LENGTH = 15
    MIN_PLAYERS = 2
    SOCKETIO_NAMESPACE = '/'
    CORS_ORIGINS = '*'
    LOG_LEVEL = 'DEBUG'
    PORT = 3000


class ManualScheduler:
    """Virtual-clock scheduler: nothing fires until ``advance`` is called."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._seq = itertools.count(1)
        self._queue = []
        self._handles = {}
        self.scheduled = []

    def now(self):
        return self._now

    def schedule_once(self, delay_sec, token, action):
        handle = next(self._seq)
        self._handles[token] = handle
        self.scheduled.append((token, delay_sec))
        heapq.heappush(self._queue, (self._now + delay_sec, handle, token, action))
        return handle

    def cancel(self, token):
        self._handles.pop(token, None)

    def cancel_all(self):
        self._handles.clear()

    def pending(self, token):
        return token in self._handles

    def advance(self, seconds):
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, handle, token, action = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if self._handles.get(token) != handle:
                continue
            del self._handles[token]
            action()
        self._now = target


class RecordingGateway(BroadcastGateway):
    def __init__(self):
        self.sent = []

    def send_to_audience(self, audience_id, event, payload=None):
        self.sent.append(('audience', audience_id, event, payload))

    def send_to_player(self, player_id, event, payload=None):
        self.sent.append(('player', player_id, event, payload))

    def events(self, name, target=None):
        return [
            payload for _, to, event, payload in self.sent
            if event == name and (target is None or to == target)
        ]


def fixed_round(kind=RoundKind.SURVIVAL, duration_sec=60, progress_rate=0.8,
                grace_period_ms=500, green_ms=1000, red_ms=1000, label='TEST'):
    """Round with fixed light lengths: green 1s, red 1s, grace 0.5s."""
    if kind == RoundKind.RACE:
        return RoundConfig(kind=kind, grace_period_ms=grace_period_ms,
                           green_duration=(green_ms, green_ms), red_duration=(red_ms, red_ms),
                           progress_rate=progress_rate, label=label)
    return RoundConfig(kind=kind, grace_period_ms=grace_period_ms,
                       green_duration=(green_ms, green_ms), red_duration=(red_ms, red_ms),
                       duration_sec=duration_sec, label=label)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def gateway():
    return RecordingGateway()


@pytest.fixture()
def make_engine(scheduler, gateway):
    def _make(*rounds, **overrides):
        catalog = RoundCatalog(rounds) if rounds else None
        return GameEngine(
            scheduler=scheduler,
            gateway=gateway,
            catalog=catalog,
            config=dict(vars(TestConfig), **overrides),
            rng=random.Random(1234),
        )
    return _make


@pytest.fixture()
def survival_engine(make_engine):
    return make_engine(fixed_round(), fixed_round(label='NEXT'))


@pytest.fixture()
def race_engine(make_engine):
    return make_engine(fixed_round(kind=RoundKind.RACE, label='RACE'))


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
    )
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass
