"""
Error taxonomy for the Selenese client.

Local errors (bad locators, patterns, variable names, arguments) fail fast and
are never retried. Command errors carry the logical command name and its
post-substitution arguments so a report can reconstruct the failing step.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class SeleneseError(Exception):
    """Base class for every error raised by selenese."""

    def __init__(self, message: str) -> None:
        self.message = message
        self.command: str | None = None
        self.args_used: tuple[str, ...] = ()
        super().__init__(message)

    def attach(self, command: str, args: Sequence[str]) -> SeleneseError:
        """Record the command context this error was raised under."""
        self.command = command
        self.args_used = tuple(args)
        return self


class InvalidLocatorError(SeleneseError):
    """Raised when a locator string cannot be parsed."""

    def __init__(self, locator: str, reason: str) -> None:
        self.locator = locator
        self.reason = reason
        super().__init__(f"Invalid locator {locator!r}: {reason}")


class PatternCompileError(SeleneseError):
    """Raised when a regexp pattern body is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class NameResolutionError(SeleneseError):
    """Raised when a stored variable is referenced but was never set."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Variable '{name}' is not defined")


class InvalidArgumentError(SeleneseError):
    """Raised when command arguments are malformed or of the wrong arity."""

    pass


class UnknownCommandError(SeleneseError):
    """Raised when a logical command name is not in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown command: {name}")


class CommandError(SeleneseError):
    """A failure tied to the execution of one logical command."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        cause: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.cause = cause
        self.details = details or {}
        rendered = ", ".join(repr(a) for a in args)
        super().__init__(f"{command}({rendered}): {cause}")
        self.attach(command, args)


class TransportError(CommandError):
    """Environment-level failure reaching or talking to the remote endpoint."""

    pass


class CommandAssertionError(CommandError):
    """An assert* comparison failed; aborts the enclosing test."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        cause: str,
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(command, args, cause)


class WaitTimeoutError(CommandError):
    """A waitFor* condition did not hold before its timeout."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        cause: str,
        timeout_ms: int,
        attempts: int,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.attempts = attempts
        super().__init__(command, args, cause)


class RemoteCommandError(TransportError):
    """The endpoint answered, but reported the command as failed."""

    pass
