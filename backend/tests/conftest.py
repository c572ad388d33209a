import pytest

from backend.closest.config import Config
from backend.closest.game.registry import RoomRegistry
from backend.closest.game.scheduler import CleanupTask
from backend.closest.oracle.answers import OracleAnswer
from backend.closest.server import create_app


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SOCKETIO_ASYNC_MODE = "threading"
    TRUST_PROXY_HEADERS = False
    ORACLE_BACKEND = "mock"
    PROMPT_RETRY_ON_FAILURE = True


class ManualScheduler:
    """Collects deferred tasks; tests fire them by hand instead of waiting."""

    def __init__(self):
        self.tasks = []

    def call_later(self, delay_sec, callback):
        task = CleanupTask(callback, delay_sec)
        self.tasks.append(task)
        return task

    def run_pending(self):
        for task in list(self.tasks):
            task.fire()


class StubOracle:
    """Answers from a queue; exceptions in the queue are raised."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def answer(self, prompt):
        self.prompts.append(prompt)
        item = self.answers.pop(0) if self.answers else OracleAnswer(value=1945.0, text="1945")
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def registry(scheduler):
    return RoomRegistry(scheduler=scheduler, ttl_sec=120)


@pytest.fixture()
def oracle():
    return StubOracle()


@pytest.fixture()
def app_and_socketio(oracle, scheduler):
    return create_app(TestConfig, oracle=oracle, scheduler=scheduler)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture()
def app_registry(flask_app):
    return flask_app.extensions["closest"]["registry"]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app, socketio):
    clients = []

    def _connect():
        c = socketio.test_client(flask_app)
        clients.append(c)
        return c

    yield _connect

    for c in clients:
        if c.is_connected():
            c.disconnect()


@pytest.fixture()
def new_room(app_registry):
    def _new_room():
        return app_registry.create_room().code

    return _new_room


@pytest.fixture()
def join(connect):
    """Connect a socket client and join it to a room; returns (client, ack)."""

    def _join(code, name, host=False):
        c = connect()
        ack = c.emit("room:join", {"code": code, "name": name, "host": host}, callback=True)
        assert ack["ok"], ack
        return c, ack

    return _join


@pytest.fixture()
def last_event():
    def _last_event(client, name):
        events = [e for e in client.get_received() if e["name"] == name]
        assert events, f"no {name} received"
        return events[-1]["args"][0]

    return _last_event
