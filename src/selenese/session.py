"""
Session: one browser, one transport, one variable store.

Every component instance belongs to exactly one session. Commands are issued
strictly one after another; the session lock keeps that true if a session is
shared across threads.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import Any

import structlog

from selenese.actions import BaseActionSet
from selenese.catalog import DEFAULT_CATALOG, CommandCatalog, CommandFamily
from selenese.config import SessionSettings
from selenese.dispatcher import CommandDispatcher
from selenese.errors import CommandAssertionError
from selenese.outcome import CommandOutcome, Value, VerificationFailure
from selenese.transport import HttpTransport, Transport
from selenese.variables import StoredValue, VariableStore
from selenese.waiting import WaitEngine

logger = structlog.get_logger(__name__)


class Session:
    """
    A test session against one remote browser.

    Commands can be run through ``dispatch`` or called as methods using
    either spelling::

        session.open("/login")
        session.type("id=user", "alice")
        session.clickAndWait("css=button[type=submit]")
        session.assert_title("glob:Welcome*")

    Generated methods return the command value, except verify* methods which
    return the CommandOutcome so callers can see a recorded failure.
    """

    def __init__(
        self,
        settings: SessionSettings | None = None,
        transport: Transport | None = None,
        catalog: CommandCatalog | None = None,
        wait_engine: WaitEngine | None = None,
        variables: dict[str, StoredValue] | None = None,
    ) -> None:
        self.settings = settings or SessionSettings()
        self._transport = transport or HttpTransport.from_settings(self.settings)
        self._actions = BaseActionSet(self._transport)
        self.variables = VariableStore(variables)
        self.wait_engine = wait_engine or WaitEngine.from_settings(self.settings)
        self.dispatcher = CommandDispatcher(
            actions=self._actions,
            variables=self.variables,
            wait_engine=self.wait_engine,
            catalog=catalog if catalog is not None else DEFAULT_CATALOG,
            page_load_script=self.settings.page_load_script,
        )
        self._lock = threading.RLock()
        self._log = logger.bind(component="session")

    @property
    def session_id(self) -> str | None:
        return self._transport.session_id

    @property
    def verification_failures(self) -> list[VerificationFailure]:
        return self.dispatcher.verification_failures

    def start(self, browser: str | None = None, start_url: str | None = None) -> str:
        """Open the remote browser session."""
        with self._lock:
            return self._actions.start_session(
                browser or self.settings.browser,
                start_url or self.settings.start_url,
            )

    def stop(self) -> None:
        """End the remote browser session and release the transport."""
        with self._lock:
            try:
                self._actions.end_session()
            finally:
                self._transport.close()

    def __enter__(self) -> Session:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def dispatch(self, name: str, *args: object) -> CommandOutcome:
        """Run one logical command and return its outcome."""
        with self._lock:
            return self.dispatcher.dispatch(name, args)

    def check_verifications(self) -> None:
        """
        Fail if any verify* command recorded a mismatch, then reset the record.

        Raises:
            CommandAssertionError: Summarizing every recorded failure
        """
        failures = list(self.verification_failures)
        self.verification_failures.clear()
        if not failures:
            return
        summary = "\n".join(f"  - {failure}" for failure in failures)
        raise CommandAssertionError(
            "verifications",
            [],
            f"{len(failures)} verification(s) failed:\n{summary}",
        )

    def _command_method(self, name: str) -> Callable[..., Value | CommandOutcome]:
        entry = self.dispatcher.catalog.lookup(name)
        verification = entry.family in (
            CommandFamily.VERIFICATION,
            CommandFamily.NEGATED_VERIFICATION,
        )

        def run(*args: object) -> Value | CommandOutcome:
            outcome = self.dispatch(entry.name, *args)
            return outcome if verification else outcome.value

        run.__name__ = name
        run.__doc__ = f"{entry.name}({', '.join(entry.argument_names)}) [{entry.family}]"
        return run

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or "dispatcher" not in self.__dict__:
            raise AttributeError(name)
        if name in self.dispatcher.catalog:
            return self._command_method(name)
        raise AttributeError(f"{type(self).__name__!r} has no command or attribute {name!r}")

    def run_commands(self, commands: Sequence[tuple[str, Sequence[object]]]) -> list[CommandOutcome]:
        """Run a batch of (name, args) pairs in order, stopping at the first fatal error."""
        return [self.dispatch(name, *args) for name, args in commands]
