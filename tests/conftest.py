"""Shared fixtures for katalink tests."""

import json

import pytest

from katalink.core.config import EngineConfig
from katalink.engine.notify import EventSink, Notifier
from katalink.engine.session import EngineSession
from katalink.engine.traffic import TrafficLogger
from katalink.engine.transport import Transport


class FakeTransport(Transport):
    """
    In-memory transport. Tests drive the connection events by hand and
    read back what the session sent.
    """

    def __init__(self, url, listener):
        self.url = url
        self.listener = listener
        self.sent: list = []
        self.close_calls = 0
        self.fail_send = None
        self.fail_close = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, text: str) -> None:
        if self.fail_send is not None:
            raise self.fail_send
        if not self._open:
            raise ConnectionError("not open")
        self.sent.append(json.loads(text))

    def close(self) -> None:
        self.close_calls += 1
        self._open = False
        if self.fail_close is not None:
            raise self.fail_close

    # Event helpers

    def open(self):
        self._open = True
        self.listener.on_open()

    def receive(self, payload):
        text = payload if isinstance(payload, str) else json.dumps(payload)
        self.listener.on_message(text)

    def drop(self):
        self._open = False
        self.listener.on_close()

    def fail(self, error):
        self.listener.on_error(error)

    def sent_ids(self):
        return [m.get("id") for m in self.sent]


class RecordingNotifier(Notifier):
    def __init__(self):
        self.alerts: list = []

    def alert(self, message: str) -> None:
        self.alerts.append(message)


class RecordingSink(EventSink):
    def __init__(self):
        self.received: list = []
        self.raise_with = None

    def receive_object(self, obj) -> None:
        self.received.append(obj)
        if self.raise_with is not None:
            raise self.raise_with


class ListLog:
    """Stand-in for the bound traffic logger."""

    def __init__(self):
        self.lines: list = []

    def info(self, line):
        self.lines.append(line)


class TransportRecorder:
    def __init__(self):
        self.created: list = []

    def __call__(self, url, listener):
        transport = FakeTransport(url, listener)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def traffic_log():
    return ListLog()


@pytest.fixture
def transports():
    return TransportRecorder()


@pytest.fixture
def config():
    return EngineConfig(proxy_url="ws://proxy.test:41949", max_visits=500)


@pytest.fixture
def session(config, notifier, sink, transports, traffic_log):
    """Session whose engine files always exist; not yet set up."""
    return EngineSession(
        config=config,
        notifier=notifier,
        event_sink=sink,
        transport_factory=transports,
        traffic=TrafficLogger(enabled=True, sink=traffic_log),
        file_exists=lambda path: bool(path),
    )


@pytest.fixture
def connected(session, transports):
    """Set up and opened session with the startup probes already cleared."""
    session.setup("/opt/katago/katago", "/opt/katago/analysis.cfg", "/opt/katago/b18.bin.gz")
    transports.last.open()
    transports.last.sent.clear()
    return session
