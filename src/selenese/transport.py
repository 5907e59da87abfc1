"""
Transport to the remote execution endpoint.

The wire contract is one command name plus ordered string arguments in, and a
success flag with an optional value or error message out. HttpTransport frames
this as the legacy remote-control protocol: a form-encoded POST of ``cmd``,
``1``, ``2``, ... and ``sessionId``, answered by ``OK[,value]`` or
``ERROR: message``.

Transports never raise for remote or connectivity failures; they return a
TRANSPORT_ERROR outcome and never retry.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import httpx
import structlog

from selenese.catalog import CommandFamily
from selenese.outcome import CommandOutcome

if TYPE_CHECKING:
    from selenese.config import SessionSettings

logger = structlog.get_logger(__name__)

DRIVER_PATH = "/selenium-server/driver/"


@dataclass(frozen=True)
class Command:
    """A single base command as it goes over the wire."""

    name: str
    args: tuple[str, ...] = field(default_factory=tuple)
    family: CommandFamily = CommandFamily.ACTION

    @classmethod
    def of(
        cls,
        name: str,
        args: Sequence[str] = (),
        family: CommandFamily = CommandFamily.ACTION,
    ) -> Command:
        return cls(name=name, args=tuple(args), family=family)


class Transport(Protocol):
    """Anything that can execute one command synchronously."""

    session_id: str | None

    def send(self, command: Command) -> CommandOutcome:
        ...

    def close(self) -> None:
        ...


def encode_request(command: Command, session_id: str | None = None) -> dict[str, str]:
    """Build the form fields for one command."""
    data = {"cmd": command.name}
    for index, arg in enumerate(command.args, start=1):
        data[str(index)] = arg
    if session_id:
        data["sessionId"] = session_id
    return data


def decode_response(body: str) -> CommandOutcome:
    """Turn an ``OK[,value]`` / ``ERROR: message`` body into an outcome."""
    if body == "OK":
        return CommandOutcome.success()
    if body.startswith("OK,"):
        return CommandOutcome.success(body[3:])
    if body.startswith("ERROR"):
        message = body[len("ERROR"):].lstrip(":,").strip() or "Remote command failed"
        return CommandOutcome.transport_error(message, remote_error=True)
    return CommandOutcome.transport_error(f"Malformed response: {body[:200]!r}")


class HttpTransport:
    """
    HTTP transport for a remote-control automation server.

    Features:
    - Persistent httpx connection pool
    - Per-call timeout, extended for commands that block server-side
    - Optional basic-auth credentials
    """

    # Commands that block on the server for up to their own timeout argument
    LONG_RUNNING_COMMANDS = frozenset({
        "open",
        "waitForCondition",
        "waitForPageToLoad",
        "waitForFrameToLoad",
        "waitForPopUp",
        "getNewBrowserSession",
        "captureEntirePageScreenshotToString",
    })

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 30000,
        credentials: tuple[str, str] | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + DRIVER_PATH
        self._timeout = timeout_ms / 1000.0
        self._long_timeout = max(120.0, self._timeout * 4)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=httpx.Timeout(self._timeout),
            auth=httpx.BasicAuth(*credentials) if credentials else None,
        )
        self.session_id: str | None = None
        self._log = logger.bind(component="http_transport", url=self._url)

    @classmethod
    def from_settings(cls, settings: SessionSettings) -> HttpTransport:
        return cls(
            base_url=settings.base_url,
            timeout_ms=settings.transport_timeout_ms,
            credentials=settings.credentials,
        )

    def _timeout_for(self, command: Command) -> float:
        if command.name in self.LONG_RUNNING_COMMANDS:
            return self._long_timeout
        return self._timeout

    def send(self, command: Command) -> CommandOutcome:
        """Send one command and decode the reply. Never raises for I/O failures."""
        timeout = self._timeout_for(command)
        start = time.monotonic()
        try:
            response = self._client.post(
                self._url,
                data=encode_request(command, self.session_id),
                headers={"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"},
                timeout=timeout,
            )
        except httpx.TimeoutException:
            self._log.warning("Command timed out", cmd=command.name, timeout_s=timeout)
            return CommandOutcome.transport_error(f"Timed out after {timeout:.1f}s")
        except httpx.TransportError as e:
            self._log.warning("Connection failed", cmd=command.name, error=str(e))
            return CommandOutcome.transport_error(f"Connection failed: {e}")

        duration_ms = int((time.monotonic() - start) * 1000)
        if not response.is_success:
            self._log.warning(
                "Unexpected HTTP status",
                cmd=command.name,
                status_code=response.status_code,
            )
            return CommandOutcome.transport_error(
                f"HTTP {response.status_code}: {response.text[:200]}"
            )

        outcome = decode_response(response.text)
        self._log.debug(
            "Command sent",
            cmd=command.name,
            status=outcome.status,
            duration_ms=duration_ms,
        )
        return outcome

    def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
