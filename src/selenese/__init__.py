"""
Selenese client.

Runs the classic Selenium Core command set (actions, accessors, store,
assert/verify/waitFor and their negations) against a remote-control endpoint,
with pattern matching, locator parsing, stored variables and polling waits.
"""

__version__ = "0.1.0"

from selenese.catalog import DEFAULT_CATALOG, CatalogEntry, CommandCatalog, CommandFamily
from selenese.config import SessionSettings, load_settings
from selenese.dispatcher import CommandDispatcher
from selenese.errors import (
    CommandAssertionError,
    CommandError,
    InvalidArgumentError,
    InvalidLocatorError,
    NameResolutionError,
    PatternCompileError,
    RemoteCommandError,
    SeleneseError,
    TransportError,
    UnknownCommandError,
    WaitTimeoutError,
)
from selenese.locators import Locator, LocatorStrategy, parse_locator
from selenese.outcome import CommandOutcome, OutcomeStatus, VerificationFailure, classify
from selenese.patterns import Pattern, PatternKind, matches, parse_pattern
from selenese.runner import ScriptRunner, ScriptRunResult, StepResult, StepStatus
from selenese.script import Script, ScriptParseError, ScriptParser, ScriptStep
from selenese.session import Session
from selenese.transport import Command, HttpTransport, Transport
from selenese.variables import VariableStore
from selenese.waiting import WaitEngine, WaitSpec

__all__ = [
    "__version__",
    # Session
    "Session",
    "SessionSettings",
    "load_settings",
    # Engine
    "CommandCatalog",
    "CatalogEntry",
    "CommandFamily",
    "CommandDispatcher",
    "DEFAULT_CATALOG",
    "VariableStore",
    "WaitEngine",
    "WaitSpec",
    "Command",
    "Transport",
    "HttpTransport",
    # Parsing
    "Pattern",
    "PatternKind",
    "parse_pattern",
    "matches",
    "Locator",
    "LocatorStrategy",
    "parse_locator",
    # Results and errors
    "CommandOutcome",
    "OutcomeStatus",
    "VerificationFailure",
    "classify",
    "SeleneseError",
    "CommandError",
    "TransportError",
    "RemoteCommandError",
    "CommandAssertionError",
    "WaitTimeoutError",
    "InvalidLocatorError",
    "PatternCompileError",
    "NameResolutionError",
    "InvalidArgumentError",
    "UnknownCommandError",
    # Scripts
    "Script",
    "ScriptStep",
    "ScriptParser",
    "ScriptParseError",
    "ScriptRunner",
    "ScriptRunResult",
    "StepResult",
    "StepStatus",
]
