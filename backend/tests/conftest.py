import heapq
import os
import random
import sys
from collections import defaultdict, namedtuple

import pytest

# Ensure the backend root (containing the `quizhub` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizhub import create_app, socketio
from quizhub.models import Question
from quizhub.services.games.scheduler import TimerHandle
from quizhub.services.rooms import Lobby, RoomRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = []
    LOG_LEVEL = 'DEBUG'
    MIN_PLAYERS = 2
    MAX_PLAYERS = 4
    DEFAULT_GAME_TYPE = 'Toohak'
    AUTO_START_CYCLE = True
    TOOHAK_QUESTION_COUNT = 2
    TOOHAK_ROUND_TIME_MS = 10000
    TOOHAK_SETTLE_DELAY_MS = 3000
    TRIVIA_QUESTIONS_PER_PLAYER = 2
    DEPARTURE_POLICY = 'forfeit'
    CHAT_MAX_LENGTH = 50
    TIMER_HEARTBEAT_SEC = 0


# Small bank with a known answer per question
SMALL_BANK = (
    Question("2 + 2?", ("3", "4", "5"), 1),
    Question("Capital of Italy?", ("Rome", "Oslo"), 0),
    Question("Largest planet?", ("Mars", "Venus", "Jupiter", "Earth"), 2),
)


Sent = namedtuple('Sent', 'kind target event payload skip')


class RecordingBroadcaster:
    """Broadcaster that records every delivery instead of sending it."""

    def __init__(self):
        self.sent = []
        self.members = defaultdict(set)

    def subscribe(self, player_id, room_id):
        self.members[room_id].add(player_id)

    def unsubscribe(self, player_id, room_id):
        self.members[room_id].discard(player_id)

    def to_room(self, room_id, event, payload, skip=None):
        self.sent.append(Sent('room', room_id, event, payload, skip))

    def to_player(self, player_id, event, payload):
        self.sent.append(Sent('player', player_id, event, payload, None))

    def events(self, name):
        return [s.payload for s in self.sent if s.event == name]

    def names(self):
        return [s.event for s in self.sent]

    def clear(self):
        self.sent = []


class ManualTimers:
    """Timer source driven by the test: nothing fires until ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = 0
        self.scheduled = []

    def call_later(self, delay_sec, callback, label=''):
        handle = TimerHandle(label)
        heapq.heappush(self._queue, (self.now + delay_sec, self._seq, handle, callback))
        self._seq += 1
        self.scheduled.append((handle, callback))
        return handle

    def pending(self):
        return [handle for _, _, handle, _ in self._queue if not handle.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            callback()
            fired += 1
        self.now = target
        return fired


@pytest.fixture()
def bank():
    return SMALL_BANK


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def registry():
    return RoomRegistry()


@pytest.fixture()
def lobby(registry, broadcaster, timers):
    return Lobby(
        registry,
        broadcaster,
        timers,
        min_players=2,
        max_players=4,
        game_options={'number_of_questions': 2, 'round_time_ms': 10000, 'settle_delay_ms': 3000},
        bank=SMALL_BANK,
        rng=random.Random(1234),
    )


@pytest.fixture()
def flask_app(timers):
    application = create_app(TestConfig, timers=timers)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


@pytest.fixture()
def app_lobby(flask_app, broadcaster):
    """The app's lobby, delivering to the recorder instead of real sockets."""
    lobby = flask_app.extensions['quizhub']['lobby']
    lobby.broadcaster = broadcaster
    return lobby
