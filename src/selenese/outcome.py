"""
Command outcomes and their classification.

Every dispatch yields exactly one CommandOutcome. classify() turns the fatal
statuses into exceptions and hands back the value for everything else.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from selenese.errors import (
    CommandAssertionError,
    CommandError,
    RemoteCommandError,
    TransportError,
    WaitTimeoutError,
)

Value = str | list[str] | bool | int | float | None


class OutcomeStatus(StrEnum):
    """Final status of one dispatched command."""

    SUCCESS = "success"
    ASSERTION_FAILED = "assertion_failed"
    VERIFICATION_FAILED = "verification_failed"
    TRANSPORT_ERROR = "transport_error"
    TIMEOUT = "timeout"


FATAL_STATUSES: frozenset[OutcomeStatus] = frozenset({
    OutcomeStatus.ASSERTION_FAILED,
    OutcomeStatus.TRANSPORT_ERROR,
    OutcomeStatus.TIMEOUT,
})


@dataclass(frozen=True)
class CommandOutcome:
    """Result of a transport round trip or of a whole dispatch."""

    status: OutcomeStatus
    value: Value = None
    message: str | None = None
    # The endpoint was reached and reported the command as failed.
    remote_error: bool = False

    @classmethod
    def success(cls, value: Value = None) -> CommandOutcome:
        return cls(OutcomeStatus.SUCCESS, value=value)

    @classmethod
    def transport_error(cls, message: str, remote_error: bool = False) -> CommandOutcome:
        return cls(OutcomeStatus.TRANSPORT_ERROR, message=message, remote_error=remote_error)

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def is_fatal(self) -> bool:
        return self.status in FATAL_STATUSES


@dataclass
class VerificationFailure:
    """A recorded, non-aborting verify* mismatch."""

    command: str
    args: tuple[str, ...]
    message: str
    recorded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __str__(self) -> str:
        rendered = ", ".join(repr(a) for a in self.args)
        return f"{self.command}({rendered}): {self.message}"


def classify(outcome: CommandOutcome, command: str, args: Sequence[str]) -> Value:
    """
    Resolve an outcome into a value or a raised error.

    Success and VerificationFailed return the outcome value; the caller
    decides what to do with a recorded verification failure.

    Raises:
        CommandAssertionError: status is ASSERTION_FAILED
        TransportError: status is TRANSPORT_ERROR
        WaitTimeoutError: status is TIMEOUT
    """
    message = outcome.message or outcome.status.value
    match outcome.status:
        case OutcomeStatus.SUCCESS | OutcomeStatus.VERIFICATION_FAILED:
            return outcome.value
        case OutcomeStatus.ASSERTION_FAILED:
            raise CommandAssertionError(command, args, message)
        case OutcomeStatus.TRANSPORT_ERROR if outcome.remote_error:
            raise RemoteCommandError(command, args, message)
        case OutcomeStatus.TRANSPORT_ERROR:
            raise TransportError(command, args, message)
        case OutcomeStatus.TIMEOUT:
            raise WaitTimeoutError(command, args, message, timeout_ms=0, attempts=0)
        case _:
            raise CommandError(command, args, f"Unhandled outcome status: {outcome.status}")
