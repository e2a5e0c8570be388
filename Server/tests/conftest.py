import os
import sys
import tempfile
import pytest

# Ensure the server root (containing the `guessword` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
SERVER_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if SERVER_ROOT not in sys.path:
    sys.path.insert(0, SERVER_ROOT)

# Keep test logs out of the working tree
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='guessword-logs-'))

from guessword import create_app
from guessword.config import TestingConfig
from guessword.exceptions import WordSourceError
from guessword.services.game_service import GameSession
from guessword.services.stats_service import StatsService
from guessword.services.stores import MemorySnapshotStore, MemoryStatsStore


class FakeWordSource:
    """Word source serving queued words; fetch fails once the queue is empty."""

    def __init__(self, *words, fallback_word=None):
        self.words = list(words)
        self.fallback_word = fallback_word
        self.fallback_calls = []

    def fetch(self, difficulty):
        if not self.words:
            raise WordSourceError("no queued word")
        return self.words.pop(0)

    def fallback(self, difficulty, exclude_words=()):
        self.fallback_calls.append((difficulty, list(exclude_words)))
        if self.fallback_word is None:
            raise RuntimeError("fallback pool missing")
        return self.fallback_word


class ManualTicker:
    def __init__(self, callback, interval):
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualTickerFactory:
    """Ticker factory whose tickers never fire on their own."""

    def __init__(self):
        self.tickers = []

    def __call__(self, callback, interval):
        ticker = ManualTicker(callback, interval)
        self.tickers.append(ticker)
        return ticker

    @property
    def current(self):
        return self.tickers[-1] if self.tickers else None


class RecordingObserver:
    def __init__(self):
        self.views = []
        self.signals = []
        self.errors = []

    def render(self, view):
        self.views.append(view)

    def signal(self, name):
        self.signals.append(name)

    def error(self, message):
        self.errors.append(message)


class RecordingSink:
    def __init__(self, recent=None):
        self.results = []
        self.recent = recent or []

    def record_result(self, result):
        self.results.append(result)

    def recent_words(self, player_id, difficulty=None):
        return list(self.recent)


def inline_spawn(target, *args):
    target(*args)


@pytest.fixture()
def ticker_factory():
    return ManualTickerFactory()


@pytest.fixture()
def observer():
    return RecordingObserver()


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def snapshot_store():
    return MemorySnapshotStore()


@pytest.fixture()
def make_session(ticker_factory, observer, sink, snapshot_store):
    def _make(*words, fallback_word=None, player_id='alice'):
        return GameSession(
            player_id,
            word_source=FakeWordSource(*words, fallback_word=fallback_word),
            persistence=sink,
            snapshot_store=snapshot_store,
            observer=observer,
            ticker_factory=ticker_factory,
            spawn=inline_spawn,
        )
    return _make


def type_word(session, word):
    for letter in word:
        session.handle_input(letter)
    session.handle_input('ENTER')


@pytest.fixture()
def word_source():
    return FakeWordSource()


@pytest.fixture()
def flask_app(word_source, ticker_factory):
    application, _ = create_app(
        TestingConfig,
        word_source=word_source,
        stats_store=MemoryStatsStore(),
        snapshot_store=MemorySnapshotStore(),
        ticker_factory=ticker_factory,
        spawn=inline_spawn,
    )
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def stats_service():
    return StatsService(MemoryStatsStore())


@pytest.fixture()
def sio_client(flask_app):
    test_client = flask_app.socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client()
    )
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()
