"""
Base action set: the named remote commands the dispatcher builds on.

The dispatcher maps every logical command (assertText, typeAndWait, ...) to
exactly one base command and runs it here.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from selenese.catalog import CommandFamily, ValueType
from selenese.errors import InvalidArgumentError, TransportError
from selenese.outcome import CommandOutcome, Value, classify
from selenese.transport import Command, Transport
from selenese.values import parse_boolean, parse_number, parse_string_array

logger = structlog.get_logger(__name__)


def decode_value(raw: Value, value_type: ValueType) -> Value:
    """
    Decode a raw wire value into its declared type.

    Raises:
        InvalidArgumentError: If the raw value does not fit the type
    """
    if value_type == ValueType.NONE:
        return raw
    text = "" if raw is None else str(raw)
    match value_type:
        case ValueType.STRING:
            return text
        case ValueType.STRING_ARRAY:
            return parse_string_array(text)
        case ValueType.NUMBER:
            return parse_number(text)
        case ValueType.BOOLEAN:
            return parse_boolean(text)
    return raw


class BaseActionSet:
    """Executes base commands through a transport."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._log = logger.bind(component="base_actions")

    @property
    def transport(self) -> Transport:
        return self._transport

    def execute(
        self,
        name: str,
        args: Sequence[str] = (),
        family: CommandFamily = CommandFamily.ACTION,
    ) -> CommandOutcome:
        """Send one base command and return the raw outcome."""
        return self._transport.send(Command.of(name, args, family))

    def decode(
        self,
        raw: Value,
        value_type: ValueType,
        command: str,
        args: Sequence[str],
    ) -> Value:
        """Decode a successful result, reporting malformed values as transport errors."""
        try:
            return decode_value(raw, value_type)
        except InvalidArgumentError as e:
            raise TransportError(command, args, f"Malformed {value_type} result: {e.message}") from e

    def call(
        self,
        name: str,
        args: Sequence[str] = (),
        value_type: ValueType = ValueType.NONE,
        family: CommandFamily = CommandFamily.ACTION,
    ) -> Value:
        """
        Run a base command and return its decoded value.

        Raises:
            TransportError: If the command could not be delivered or failed remotely
        """
        outcome = self.execute(name, args, family)
        if not outcome.ok:
            classify(outcome, name, args)
        return self.decode(outcome.value, value_type, name, args)

    def start_session(self, browser: str, start_url: str) -> str:
        """Open a browser session and bind the transport to it."""
        session_id = self.call("getNewBrowserSession", [browser, start_url], ValueType.STRING)
        if not session_id:
            raise TransportError("getNewBrowserSession", [browser, start_url], "No session id returned")
        self._transport.session_id = str(session_id)
        self._log.info("Browser session started", session_id=session_id, browser=browser)
        return str(session_id)

    def end_session(self) -> None:
        """Close the browser session bound to the transport, if any."""
        if self._transport.session_id is None:
            return
        try:
            self.call("testComplete")
        finally:
            self._log.info("Browser session ended", session_id=self._transport.session_id)
            self._transport.session_id = None
