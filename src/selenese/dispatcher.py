"""
Command dispatcher.

Runs one logical command end to end:
1. Look the name up in the catalog (family, base command, argument roles)
2. Substitute ${name} references through the variable store
3. Parse locator and pattern arguments according to their roles
4. Run the base command and branch on the family:
   action, action + page-load wait, accessor, store,
   assert/verify/waitFor and their negations
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from selenese.actions import BaseActionSet
from selenese.catalog import (
    DEFAULT_CATALOG,
    ArgRole,
    CatalogEntry,
    CommandCatalog,
    CommandFamily,
    ValueType,
)
from selenese.config import DEFAULT_PAGE_LOAD_SCRIPT
from selenese.errors import (
    CommandAssertionError,
    InvalidArgumentError,
    SeleneseError,
)
from selenese.locators import (
    parse_attribute_locator,
    parse_frame_locator,
    parse_locator,
    parse_option_locator,
    parse_table_cell_address,
    parse_window_locator,
)
from selenese.outcome import (
    CommandOutcome,
    OutcomeStatus,
    Value,
    VerificationFailure,
    classify,
)
from selenese.patterns import parse_pattern
from selenese.values import parse_number, parse_string_array, stringify
from selenese.variables import VariableStore
from selenese.waiting import WaitEngine

logger = structlog.get_logger(__name__)

JAVASCRIPT_PREFIX = "javascript{"


def values_match(value_type: ValueType, actual: Value, expected: str) -> bool:
    """
    Compare an accessor result against an expected pattern string.

    Arrays split the expected string on unescaped commas and match element by
    element; everything else matches the pattern against the stringified value.
    """
    if value_type == ValueType.STRING_ARRAY:
        actual_items = actual if isinstance(actual, list) else parse_string_array(stringify(actual))
        expected_items = parse_string_array(expected)
        if len(actual_items) != len(expected_items):
            return False
        return all(
            parse_pattern(pattern).matches(item)
            for pattern, item in zip(expected_items, actual_items, strict=True)
        )
    return parse_pattern(expected).matches(stringify(actual))


class CommandDispatcher:
    """Maps logical commands onto base actions and applies their family semantics."""

    def __init__(
        self,
        actions: BaseActionSet,
        variables: VariableStore | None = None,
        wait_engine: WaitEngine | None = None,
        catalog: CommandCatalog | None = None,
        page_load_script: str = DEFAULT_PAGE_LOAD_SCRIPT,
    ) -> None:
        self._actions = actions
        self._variables = variables if variables is not None else VariableStore()
        self._wait_engine = wait_engine or WaitEngine()
        self._catalog = catalog if catalog is not None else DEFAULT_CATALOG
        self._page_load_script = page_load_script
        self.verification_failures: list[VerificationFailure] = []
        self._log = logger.bind(component="dispatcher")

    @property
    def variables(self) -> VariableStore:
        return self._variables

    @property
    def catalog(self) -> CommandCatalog:
        return self._catalog

    @property
    def wait_engine(self) -> WaitEngine:
        return self._wait_engine

    def dispatch(self, name: str, args: Sequence[object] = ()) -> CommandOutcome:
        """
        Run one logical command.

        Returns:
            SUCCESS with the command value, or VERIFICATION_FAILED for a
            verify* mismatch (also appended to verification_failures)

        Raises:
            CommandAssertionError: An assert* comparison failed
            WaitTimeoutError: A waitFor* condition or page load timed out
            TransportError: The base command could not be run
            SeleneseError: Unknown command or malformed arguments
        """
        entry = self._catalog.lookup(name)
        raw_args = [stringify(a) for a in args]
        if len(raw_args) != entry.arity:
            expected = ", ".join(entry.argument_names) or "no arguments"
            raise InvalidArgumentError(
                f"{entry.name} takes {entry.arity} argument(s) ({expected}), got {len(raw_args)}"
            ).attach(entry.name, raw_args)

        try:
            resolved = [self._variables.substitute(a) for a in raw_args]
        except SeleneseError as e:
            raise e.attach(entry.name, raw_args)
        try:
            wire_args = self._prepare_arguments(entry, resolved)
        except SeleneseError as e:
            raise e.attach(entry.name, resolved)

        self._log.debug("Dispatching command", cmd=entry.name, family=entry.family, args=resolved)

        match entry.family:
            case CommandFamily.ACTION if entry.local:
                return self._run_local(entry, resolved)
            case CommandFamily.ACTION:
                return CommandOutcome.success(self._call(entry, wire_args, resolved))
            case CommandFamily.ACTION_AND_WAIT:
                value = self._call(entry, wire_args, resolved)
                self._wait_for_page_load(entry, resolved)
                return CommandOutcome.success(value)
            case CommandFamily.ACCESSOR:
                return CommandOutcome.success(self._call(entry, wire_args, resolved))
            case CommandFamily.STORE:
                value = self._call(entry, wire_args, resolved)
                self._variables.set(resolved[-1], value)  # type: ignore[arg-type]
                return CommandOutcome.success(value)
            case CommandFamily.ASSERTION | CommandFamily.NEGATED_ASSERTION:
                return self._assert(entry, wire_args, resolved)
            case CommandFamily.VERIFICATION | CommandFamily.NEGATED_VERIFICATION:
                return self._verify(entry, wire_args, resolved)
            case CommandFamily.WAIT_FOR | CommandFamily.NEGATED_WAIT_FOR:
                return self._wait_for(entry, wire_args, resolved)
        raise InvalidArgumentError(f"Unsupported command family: {entry.family}").attach(
            entry.name, resolved
        )

    # Argument handling

    def _prepare_arguments(self, entry: CatalogEntry, resolved: list[str]) -> list[str]:
        """Validate every argument by role; return the ones forwarded to the base command."""
        prepared: list[str] = []
        for argument, value in zip(entry.arguments, resolved, strict=True):
            prepared.append(self._prepare_argument(argument.role, value, entry))
        return prepared[: entry.base_arity]

    def _prepare_argument(self, role: ArgRole, value: str, entry: CatalogEntry) -> str:
        if value.startswith(JAVASCRIPT_PREFIX):
            return value
        match role:
            case ArgRole.LOCATOR:
                return str(parse_locator(value))
            case ArgRole.ATTRIBUTE:
                return str(parse_attribute_locator(value))
            case ArgRole.CELL:
                return str(parse_table_cell_address(value))
            case ArgRole.OPTION:
                option = parse_option_locator(value)
                parse_pattern(option.argument)
                return str(option)
            case ArgRole.WINDOW:
                return str(parse_window_locator(value))
            case ArgRole.FRAME:
                return parse_frame_locator(value)
            case ArgRole.PATTERN if entry.value_type == ValueType.STRING_ARRAY and entry.family.is_check:
                for item in parse_string_array(value):
                    parse_pattern(item)
                return value
            case ArgRole.PATTERN:
                parse_pattern(value)
                return value
            case ArgRole.NUMBER:
                parse_number(value)
                return value
            case ArgRole.VARIABLE:
                if not VariableStore.NAME_PATTERN.match(value):
                    raise InvalidArgumentError(f"Invalid variable name: {value!r}")
                return value
        return value

    # Family handlers

    def _call(self, entry: CatalogEntry, wire_args: list[str], resolved: list[str]) -> Value:
        return self._call_base(entry.base, wire_args, entry.value_type, entry, resolved)

    def _call_base(
        self,
        base: str,
        wire_args: list[str],
        value_type: ValueType,
        entry: CatalogEntry,
        resolved: list[str],
    ) -> Value:
        """Run a base command, reporting failures under the logical command name."""
        outcome = self._actions.execute(base, wire_args, entry.family)
        if not outcome.ok:
            self._log.warning("Command failed", cmd=entry.name, base=base, error=outcome.message)
            classify(outcome, entry.name, resolved)
        return self._actions.decode(outcome.value, value_type, entry.name, resolved)

    def _check(self, entry: CatalogEntry, actual: Value, resolved: list[str]) -> str | None:
        """Apply the family comparison; return a failure message or None."""
        negated = entry.family.negated
        if entry.value_type == ValueType.BOOLEAN:
            if bool(actual) != negated:
                return None
            shown = ", ".join(repr(a) for a in resolved)
            return f"{entry.base}({shown}) returned {stringify(actual)}"

        expected = resolved[-1]
        matched = values_match(entry.value_type, actual, expected)
        if matched != negated:
            return None
        if negated:
            return f"Actual value {stringify(actual)!r} did match {expected!r}"
        return f"Actual value {stringify(actual)!r} did not match {expected!r}"

    def _assert(self, entry: CatalogEntry, wire_args: list[str], resolved: list[str]) -> CommandOutcome:
        actual = self._call(entry, wire_args, resolved)
        failure = self._check(entry, actual, resolved)
        if failure is not None:
            self._log.error("Assertion failed", cmd=entry.name, args=resolved, reason=failure)
            expected = resolved[-1] if entry.value_type != ValueType.BOOLEAN else not entry.family.negated
            raise CommandAssertionError(
                entry.name, resolved, failure, expected=expected, actual=actual
            )
        return CommandOutcome.success(actual)

    def _verify(self, entry: CatalogEntry, wire_args: list[str], resolved: list[str]) -> CommandOutcome:
        actual = self._call(entry, wire_args, resolved)
        failure = self._check(entry, actual, resolved)
        if failure is None:
            return CommandOutcome.success(actual)
        record = VerificationFailure(command=entry.name, args=tuple(resolved), message=failure)
        self.verification_failures.append(record)
        self._log.warning("Verification failed", cmd=entry.name, args=resolved, reason=failure)
        return CommandOutcome(OutcomeStatus.VERIFICATION_FAILED, value=actual, message=failure)

    def _wait_for(self, entry: CatalogEntry, wire_args: list[str], resolved: list[str]) -> CommandOutcome:
        last: dict[str, Value] = {}

        def condition() -> bool:
            actual = self._call(entry, wire_args, resolved)
            last["value"] = actual
            return self._check(entry, actual, resolved) is None

        spec = self._wait_engine.spec(
            condition,
            command=entry.name,
            args=tuple(resolved),
            description=f"{entry.base} to {'not ' if entry.family.negated else ''}match",
        )
        attempts = self._wait_engine.wait(spec)
        self._log.debug("Wait finished", cmd=entry.name, attempts=attempts)
        return CommandOutcome.success(last.get("value"))

    def _wait_for_page_load(self, entry: CatalogEntry, resolved: list[str]) -> None:
        def page_loaded() -> bool:
            state = self._actions.call("getEval", [self._page_load_script], ValueType.STRING)
            return state == "complete"

        spec = self._wait_engine.spec(
            page_loaded,
            command=entry.name,
            args=tuple(resolved),
            description="page to load",
        )
        self._wait_engine.wait(spec)

    def _run_local(self, entry: CatalogEntry, resolved: list[str]) -> CommandOutcome:
        match entry.name:
            case "store":
                expression, variable = resolved
                value: Value = expression
                if expression.startswith(JAVASCRIPT_PREFIX) and expression.endswith("}"):
                    script = expression[len(JAVASCRIPT_PREFIX):-1]
                    value = self._call_base("getEval", [script], ValueType.STRING, entry, resolved)
                self._variables.set(variable, value)  # type: ignore[arg-type]
                return CommandOutcome.success(value)
            case "echo":
                self._log.info("echo", message=resolved[0])
                return CommandOutcome.success(resolved[0])
            case "pause":
                self._wait_engine.pause(int(parse_number(resolved[0])))
                return CommandOutcome.success()
        raise InvalidArgumentError(f"No client-side handler for {entry.name}").attach(
            entry.name, resolved
        )
