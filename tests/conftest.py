"""Pytest fixtures for selenese tests."""

from __future__ import annotations

import os
from collections import defaultdict, deque
from collections.abc import Generator

import pytest

from selenese.actions import BaseActionSet
from selenese.config import SessionSettings
from selenese.dispatcher import CommandDispatcher
from selenese.outcome import CommandOutcome
from selenese.session import Session
from selenese.transport import Command
from selenese.variables import VariableStore
from selenese.waiting import WaitEngine


class ScriptedTransport:
    """In-memory transport answering from per-command reply queues."""

    DEFAULTS = {
        "getNewBrowserSession": CommandOutcome.success("session-1"),
        "getEval": CommandOutcome.success("complete"),
    }

    def __init__(self) -> None:
        self.session_id: str | None = None
        self.sent: list[Command] = []
        self.session_ids: list[str | None] = []
        self.closed = False
        self._queues: dict[str, deque[CommandOutcome]] = defaultdict(deque)
        self._always: dict[str, CommandOutcome] = dict(self.DEFAULTS)

    def reply(self, name: str, *values: str | None) -> None:
        """Queue successful replies for the next calls of ``name``."""
        for value in values:
            self._queues[name].append(CommandOutcome.success(value))

    def always(self, name: str, value: str | None) -> None:
        """Answer every call of ``name`` with the same value once its queue is empty."""
        self._always[name] = CommandOutcome.success(value)

    def fail(self, name: str, message: str) -> None:
        """Queue a remote ERROR reply."""
        self._queues[name].append(CommandOutcome.transport_error(message, remote_error=True))

    def drop(self, name: str, message: str = "Connection refused") -> None:
        """Queue a connectivity failure."""
        self._queues[name].append(CommandOutcome.transport_error(message))

    def send(self, command: Command) -> CommandOutcome:
        self.sent.append(command)
        self.session_ids.append(self.session_id)
        queue = self._queues[command.name]
        if queue:
            return queue.popleft()
        return self._always.get(command.name, CommandOutcome.success())

    def close(self) -> None:
        self.closed = True

    def names(self) -> list[str]:
        return [c.name for c in self.sent]

    def calls(self, name: str) -> list[tuple[str, ...]]:
        return [c.args for c in self.sent if c.name == name]


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep SELENESE_* variables from the host out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("SELENESE_"):
            monkeypatch.delenv(key)
    yield


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wait_engine(clock: FakeClock) -> WaitEngine:
    """Wait engine with a 1s timeout and 250ms polling on the fake clock."""
    return WaitEngine(
        default_timeout_ms=1000,
        default_poll_interval_ms=250,
        max_consecutive_transport_errors=3,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def variables() -> VariableStore:
    return VariableStore()


@pytest.fixture
def dispatcher(
    transport: ScriptedTransport,
    variables: VariableStore,
    wait_engine: WaitEngine,
) -> CommandDispatcher:
    return CommandDispatcher(
        actions=BaseActionSet(transport),
        variables=variables,
        wait_engine=wait_engine,
    )


@pytest.fixture
def settings() -> SessionSettings:
    return SessionSettings(base_url="http://rc.example.test:4444", browser="*chrome")


@pytest.fixture
def session(
    settings: SessionSettings,
    transport: ScriptedTransport,
    wait_engine: WaitEngine,
) -> Session:
    return Session(settings=settings, transport=transport, wait_engine=wait_engine)


@pytest.fixture
def sample_script() -> str:
    """Login script in the three-column style plus an args step."""
    return '''
name: Login
description: Sign in and land on the dashboard
variables:
  user: alice
steps:
  - command: open
    target: /login
  - name: Enter user name
    command: type
    target: id=username
    value: ${user}
  - command: clickAndWait
    target: css=button[type=submit]
  - command: storeText
    target: id=greeting
    value: greeting
  - command: assertTitle
    args: ["glob:Welcome*"]
'''
