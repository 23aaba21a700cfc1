import logging
import os
import random
import sys
import pytest

# Ensure the backend root (containing the `beauty_contest` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from beauty_contest import create_app, socketio
from beauty_contest.services.games.lifecycle import RoundLifecycle
from beauty_contest.services.games.scheduler import TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROUND_DURATION_SEC = 30
    START_DELAY_SEC = 2
    NEXT_ROUND_DELAY_SEC = 5
    GAME_END_DELAY_SEC = 3
    CORS_ORIGINS = []


class ManualScheduler:
    """Scheduler driven by the test: timers fire only inside ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._timers = []

    def call_later(self, delay, callback, *args, name='timer'):
        handle = TimerHandle(name, delay)
        self._timers.append((self.now + delay, handle.id, handle, callback, args))
        return handle

    def pending(self, name=None):
        return [
            t[2] for t in self._timers
            if t[2].pending and (name is None or t[2].name == name)
        ]

    def advance(self, seconds):
        end = self.now + seconds
        while True:
            due = [t for t in self._timers if t[0] <= end and t[2].pending]
            if not due:
                break
            timer = min(due, key=lambda t: (t[0], t[1]))
            self._timers.remove(timer)
            self.now = timer[0]
            due_at, _, handle, callback, args = timer
            handle.fired = True
            callback(*args)
        self.now = end
        self._timers = [t for t in self._timers if t[2].pending]


class Recorder:
    """Collects broadcasts in the order the lifecycle sends them."""

    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [name for name, _ in self.events]

    def of(self, event):
        return [payload for name, payload in self.events if name == event]

    def clear(self):
        self.events = []


PLAYER_NAMES = ['Alice', 'Bob', 'Cara', 'Dan']


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def lifecycle(scheduler, recorder):
    return RoundLifecycle(
        emit=recorder,
        scheduler=scheduler,
        logger=logging.getLogger('beauty_contest.tests'),
        round_duration=30,
        start_delay=2,
        next_round_delay=5,
        game_end_delay=3,
        rng=random.Random(1234),
    )


@pytest.fixture()
def players(lifecycle):
    return [lifecycle.join(name) for name in PLAYER_NAMES]


@pytest.fixture()
def open_round(lifecycle, scheduler, players, recorder):
    """Four players in, game started, round 1 accepting numbers."""
    lifecycle.start(players[0].id)
    scheduler.advance(2)
    recorder.clear()
    return players


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig, scheduler=ManualScheduler(), rng=random.Random(7))
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
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
