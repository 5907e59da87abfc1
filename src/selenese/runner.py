"""
Script runner.

Executes script steps in order through a Session. The first fatal error
(assertion failure, wait timeout, transport or local error) stops the script
and marks the remaining steps as skipped. Verification failures are recorded
and fail the script at the end without stopping it.
"""

from __future__ import annotations

import contextlib
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import structlog

from selenese.config import SessionSettings
from selenese.errors import SeleneseError, UnknownCommandError
from selenese.outcome import OutcomeStatus, Value
from selenese.script import Script, ScriptStep
from selenese.session import Session

logger = structlog.get_logger(__name__)


class StepStatus(StrEnum):
    """Status of a script step or whole script."""

    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Result of a single step execution."""

    step_index: int
    step_name: str | None
    command: str
    args: list[str]
    status: StepStatus
    duration_ms: int = 0
    value: Value = None
    error: str | None = None
    error_type: str | None = None
    error_traceback: str | None = None


@dataclass
class ScriptRunResult:
    """Result of a complete script run."""

    script_name: str
    status: StepStatus
    started_at: datetime
    finished_at: datetime | None = None
    duration_ms: int = 0
    total_steps: int = 0
    passed_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0
    step_results: list[StepResult] = field(default_factory=list)
    verification_failures: list[str] = field(default_factory=list)
    error: str | None = None
    variables: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "script_name": self.script_name,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "total_steps": self.total_steps,
            "passed_steps": self.passed_steps,
            "failed_steps": self.failed_steps,
            "skipped_steps": self.skipped_steps,
            "verification_failures": self.verification_failures,
            "error": self.error,
            "steps": [
                {
                    "index": s.step_index,
                    "name": s.step_name,
                    "command": s.command,
                    "args": s.args,
                    "status": s.status,
                    "duration_ms": s.duration_ms,
                    "error": s.error,
                }
                for s in self.step_results
            ],
        }


SessionFactory = Callable[[SessionSettings], Session]

VERIFICATION_FAILURE = "VerificationFailure"


class ScriptRunner:
    """
    Runs scripts against a remote browser.

    Each script gets its own Session built from the base settings plus the
    script's ``settings`` block, so variables never leak between scripts.
    """

    def __init__(
        self,
        settings: SessionSettings | None = None,
        session_factory: SessionFactory | None = None,
        capture_traceback: bool = False,
    ) -> None:
        self._settings = settings or SessionSettings()
        self._session_factory = session_factory or Session
        self._capture_traceback = capture_traceback
        self._log = logger.bind(component="script_runner")

    def run(self, script: Script, variables: dict[str, Any] | None = None) -> ScriptRunResult:
        """
        Run a script in a fresh session.

        Args:
            script: Parsed script
            variables: Extra variables, overridden by the script's own

        Returns:
            ScriptRunResult with one StepResult per step
        """
        result = ScriptRunResult(
            script_name=script.name,
            status=StepStatus.PENDING,
            started_at=datetime.now(UTC),
            total_steps=len(script.steps),
        )
        self._log.info("Starting script", script=script.name, steps=len(script.steps))

        session: Session | None = None
        try:
            settings = self._settings.with_overrides(**script.settings)
            session = self._session_factory(settings)
            session.variables.update({**(variables or {}), **script.variables})
            session.start()
            self._run_steps(session, script, result)
        except SeleneseError as e:
            result.error = str(e)
            self._log.error("Script aborted", script=script.name, error=str(e))
        except ValueError as e:
            result.error = f"Invalid settings: {e}"
            self._log.error("Invalid script settings", script=script.name, error=str(e))
        finally:
            if session is not None:
                result.variables = session.variables.as_dict()
                with contextlib.suppress(SeleneseError):
                    session.stop()

        self._finish(script, result)
        return result

    def _run_steps(self, session: Session, script: Script, result: ScriptRunResult) -> None:
        aborted = False
        for i, step in enumerate(script.steps):
            if aborted:
                step_result = self._skipped(session, step, i)
            else:
                step_result = self._execute_step(session, step, i)
                aborted = (
                    step_result.status == StepStatus.FAILED
                    and step_result.error_type != VERIFICATION_FAILURE
                )
            result.step_results.append(step_result)

            match step_result.status:
                case StepStatus.PASSED:
                    result.passed_steps += 1
                case StepStatus.FAILED:
                    result.failed_steps += 1
                case StepStatus.SKIPPED:
                    result.skipped_steps += 1

        result.verification_failures = [str(f) for f in session.verification_failures]
        session.verification_failures.clear()

    def _arguments(self, session: Session, step: ScriptStep) -> list[str]:
        try:
            entry = session.dispatcher.catalog.lookup(step.command)
        except UnknownCommandError:
            return step.arguments(0)
        return step.arguments(entry.arity)

    def _skipped(self, session: Session, step: ScriptStep, index: int) -> StepResult:
        return StepResult(
            step_index=index,
            step_name=step.name,
            command=step.command,
            args=self._arguments(session, step),
            status=StepStatus.SKIPPED,
        )

    def _execute_step(self, session: Session, step: ScriptStep, index: int) -> StepResult:
        """Execute one step and convert its outcome or error into a StepResult."""
        start = time.monotonic()
        args = self._arguments(session, step)
        step_result = StepResult(
            step_index=index,
            step_name=step.name,
            command=step.command,
            args=args,
            status=StepStatus.PASSED,
        )
        try:
            outcome = session.dispatch(step.command, *args)
            step_result.value = outcome.value
            if outcome.status == OutcomeStatus.VERIFICATION_FAILED:
                step_result.status = StepStatus.FAILED
                step_result.error = outcome.message
                step_result.error_type = VERIFICATION_FAILURE
        except SeleneseError as e:
            step_result.status = StepStatus.FAILED
            step_result.error = str(e)
            step_result.error_type = type(e).__name__
            if self._capture_traceback:
                step_result.error_traceback = traceback.format_exc()
            self._log.error(
                "Step failed",
                step=index + 1,
                cmd=step.command,
                error=str(e),
            )

        step_result.duration_ms = int((time.monotonic() - start) * 1000)
        return step_result

    def _finish(self, script: Script, result: ScriptRunResult) -> None:
        result.finished_at = datetime.now(UTC)
        result.duration_ms = int((result.finished_at - result.started_at).total_seconds() * 1000)
        failed = result.failed_steps > 0 or result.error is not None
        result.status = StepStatus.FAILED if failed else StepStatus.PASSED

        self._log.info(
            "Script completed",
            script=script.name,
            status=result.status,
            passed=result.passed_steps,
            failed=result.failed_steps,
            skipped=result.skipped_steps,
            duration_ms=result.duration_ms,
        )
