"""
Polling wait engine used by waitFor* commands and *AndWait actions.

A predicate is evaluated immediately and then every poll interval until it
holds or the timeout elapses. Connectivity failures during polling count as
"not yet true" until too many happen in a row.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from selenese.errors import RemoteCommandError, TransportError, WaitTimeoutError

if TYPE_CHECKING:
    from selenese.config import SessionSettings

logger = structlog.get_logger(__name__)


@dataclass
class WaitSpec:
    """One wait: what to poll, for how long, and how often."""

    predicate: Callable[[], bool]
    timeout_ms: int
    poll_interval_ms: int
    command: str = "wait"
    args: tuple[str, ...] = field(default_factory=tuple)
    description: str = "condition"


class WaitEngine:
    """Single-threaded polling loop with an injectable clock and sleep."""

    def __init__(
        self,
        default_timeout_ms: int = 30000,
        default_poll_interval_ms: int = 500,
        max_consecutive_transport_errors: int = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if default_timeout_ms <= 0 or default_poll_interval_ms <= 0:
            raise ValueError("Wait timeout and poll interval must be positive")
        if max_consecutive_transport_errors < 1:
            raise ValueError("max_consecutive_transport_errors must be at least 1")
        self.default_timeout_ms = default_timeout_ms
        self.default_poll_interval_ms = default_poll_interval_ms
        self.max_consecutive_transport_errors = max_consecutive_transport_errors
        self._clock = clock
        self._sleep = sleep
        self._log = logger.bind(component="wait_engine")

    @classmethod
    def from_settings(cls, settings: SessionSettings, **kwargs: object) -> WaitEngine:
        return cls(
            default_timeout_ms=settings.wait_timeout_ms,
            default_poll_interval_ms=settings.poll_interval_ms,
            max_consecutive_transport_errors=settings.max_consecutive_transport_errors,
            **kwargs,  # type: ignore[arg-type]
        )

    def spec(
        self,
        predicate: Callable[[], bool],
        timeout_ms: int | None = None,
        poll_interval_ms: int | None = None,
        command: str = "wait",
        args: tuple[str, ...] = (),
        description: str = "condition",
    ) -> WaitSpec:
        """Build a WaitSpec, filling in session defaults."""
        return WaitSpec(
            predicate=predicate,
            timeout_ms=timeout_ms if timeout_ms is not None else self.default_timeout_ms,
            poll_interval_ms=(
                poll_interval_ms if poll_interval_ms is not None else self.default_poll_interval_ms
            ),
            command=command,
            args=args,
            description=description,
        )

    def wait(self, spec: WaitSpec) -> int:
        """
        Poll until the predicate holds.

        Returns:
            Number of predicate evaluations performed

        Raises:
            WaitTimeoutError: If the predicate never held within the timeout
            TransportError: If too many consecutive connectivity errors occur
        """
        deadline = self._clock() + spec.timeout_ms / 1000.0
        poll_interval = spec.poll_interval_ms / 1000.0
        attempts = 0
        consecutive_errors = 0
        last_error: TransportError | None = None

        while True:
            attempts += 1
            try:
                if spec.predicate():
                    if attempts > 1:
                        self._log.debug(
                            "Condition satisfied",
                            cmd=spec.command,
                            attempts=attempts,
                        )
                    return attempts
                consecutive_errors = 0
            except RemoteCommandError as e:
                # The endpoint is reachable; the element or state is just not there yet.
                consecutive_errors = 0
                last_error = e
            except TransportError as e:
                consecutive_errors += 1
                last_error = e
                if consecutive_errors >= self.max_consecutive_transport_errors:
                    self._log.warning(
                        "Giving up after consecutive transport errors",
                        cmd=spec.command,
                        errors=consecutive_errors,
                        attempts=attempts,
                    )
                    raise TransportError(
                        spec.command,
                        spec.args,
                        f"{consecutive_errors} consecutive transport errors while waiting "
                        f"for {spec.description}: {e.cause}",
                    ) from e

            remaining = deadline - self._clock()
            if remaining <= 0:
                self._log.warning(
                    "Wait timed out",
                    cmd=spec.command,
                    timeout_ms=spec.timeout_ms,
                    attempts=attempts,
                )
                cause = f"Timed out after {spec.timeout_ms}ms waiting for {spec.description}"
                if last_error is not None:
                    cause += f" (last error: {last_error.cause})"
                raise WaitTimeoutError(
                    spec.command,
                    spec.args,
                    cause,
                    timeout_ms=spec.timeout_ms,
                    attempts=attempts,
                )
            self._sleep(min(poll_interval, remaining))

    def pause(self, milliseconds: int) -> None:
        """Block for a fixed time using the engine's sleep."""
        if milliseconds > 0:
            self._sleep(milliseconds / 1000.0)
