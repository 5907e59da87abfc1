"""
Command catalog.

Every logical command is generated from a base action or an accessor
capability. An accessor capability such as ``Title`` yields ``getTitle``,
``storeTitle``, ``assertTitle``, ``assertNotTitle``, ``verifyTitle``,
``verifyNotTitle``, ``waitForTitle`` and ``waitForNotTitle``; an action such
as ``click`` yields ``click`` and ``clickAndWait``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum

from selenese.errors import UnknownCommandError


class CommandFamily(StrEnum):
    """How the dispatcher treats a logical command."""

    ACTION = "action"
    ACTION_AND_WAIT = "action_and_wait"
    ACCESSOR = "accessor"
    STORE = "store"
    ASSERTION = "assertion"
    NEGATED_ASSERTION = "negated_assertion"
    VERIFICATION = "verification"
    NEGATED_VERIFICATION = "negated_verification"
    WAIT_FOR = "wait_for"
    NEGATED_WAIT_FOR = "negated_wait_for"

    @property
    def negated(self) -> bool:
        return self in (
            CommandFamily.NEGATED_ASSERTION,
            CommandFamily.NEGATED_VERIFICATION,
            CommandFamily.NEGATED_WAIT_FOR,
        )

    @property
    def is_check(self) -> bool:
        """True for the assert/verify/waitFor families and their negations."""
        return self not in (
            CommandFamily.ACTION,
            CommandFamily.ACTION_AND_WAIT,
            CommandFamily.ACCESSOR,
            CommandFamily.STORE,
        )


class ArgRole(StrEnum):
    """What an argument means, which decides how it is validated."""

    LOCATOR = "locator"
    PATTERN = "pattern"
    VALUE = "value"
    VARIABLE = "variable"
    SCRIPT = "script"
    URL = "url"
    OPTION = "option"
    ATTRIBUTE = "attribute"
    CELL = "cell"
    WINDOW = "window"
    FRAME = "frame"
    NUMBER = "number"


class ValueType(StrEnum):
    """Decoded type of an accessor result."""

    NONE = "none"
    STRING = "string"
    STRING_ARRAY = "string[]"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Argument:
    name: str
    role: ArgRole


@dataclass(frozen=True)
class ActionSpec:
    """A base action sent to the endpoint (or handled client-side if local)."""

    name: str
    arguments: tuple[Argument, ...] = ()
    and_wait: bool = True
    value_type: ValueType = ValueType.NONE
    local: bool = False


@dataclass(frozen=True)
class Capability:
    """An accessor from which get/is, store and check commands are derived."""

    name: str
    value_type: ValueType
    arguments: tuple[Argument, ...] = ()
    prefix: str | None = None

    @property
    def accessor_name(self) -> str:
        prefix = self.prefix or ("is" if self.value_type == ValueType.BOOLEAN else "get")
        return f"{prefix}{self.name}"


@dataclass(frozen=True)
class CatalogEntry:
    """One logical command and everything the dispatcher needs to run it."""

    name: str
    family: CommandFamily
    base: str
    arguments: tuple[Argument, ...]
    value_type: ValueType = ValueType.NONE
    local: bool = False
    # Leading arguments forwarded to the base command; the rest stay client-side.
    base_arity: int = 0

    @property
    def arity(self) -> int:
        return len(self.arguments)

    @property
    def argument_names(self) -> list[str]:
        return [a.name for a in self.arguments]


# waitFor*/store names that are plain actions rather than generated families.
ACTION_EXCLUSIONS: frozenset[str] = frozenset({
    "store",
    "waitForCondition",
    "waitForFrameToLoad",
    "waitForPageToLoad",
    "waitForPopUp",
})

_CHECK_PREFIXES: tuple[tuple[str, CommandFamily, CommandFamily], ...] = (
    ("assert", CommandFamily.ASSERTION, CommandFamily.NEGATED_ASSERTION),
    ("verify", CommandFamily.VERIFICATION, CommandFamily.NEGATED_VERIFICATION),
    ("waitFor", CommandFamily.WAIT_FOR, CommandFamily.NEGATED_WAIT_FOR),
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _has_prefix(prefix: str, name: str) -> bool:
    """Prefix followed by the start of a capitalized word."""
    return name.startswith(prefix) and len(name) > len(prefix) and name[len(prefix)].isupper()


def family_of(name: str) -> CommandFamily:
    """Determine a command family from its name alone."""
    if name in ACTION_EXCLUSIONS:
        return CommandFamily.ACTION
    if _has_prefix("store", name):
        return CommandFamily.STORE
    if _has_prefix("get", name) or _has_prefix("is", name):
        return CommandFamily.ACCESSOR
    for prefix, positive, negative in _CHECK_PREFIXES:
        if _has_prefix(prefix, name):
            rest = name[len(prefix):]
            if _has_prefix("Not", rest) or rest.endswith("NotPresent"):
                return negative
            return positive
    if name.endswith("AndWait"):
        return CommandFamily.ACTION_AND_WAIT
    return CommandFamily.ACTION


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _negated_names(prefix: str, capability: Capability) -> list[str]:
    names = [f"{prefix}Not{capability.name}"]
    if capability.name.endswith("Present"):
        # Canonical spelling first: assertTextNotPresent.
        names.insert(0, f"{prefix}{capability.name[:-len('Present')]}NotPresent")
    return names


def _a(name: str, role: ArgRole) -> Argument:
    return Argument(name, role)


LOCATOR = _a("locator", ArgRole.LOCATOR)
SELECT_LOCATOR = _a("selectLocator", ArgRole.LOCATOR)
VARIABLE_NAME = _a("variableName", ArgRole.VARIABLE)
EXPECTED_PATTERN = _a("pattern", ArgRole.PATTERN)
COORD = _a("coordString", ArgRole.VALUE)
TIMEOUT = _a("timeout", ArgRole.NUMBER)


BASE_ACTIONS: tuple[ActionSpec, ...] = (
    # Navigation and windows
    ActionSpec("open", (_a("url", ArgRole.URL),), and_wait=False),
    ActionSpec("openWindow", (_a("url", ArgRole.URL), _a("windowID", ArgRole.VALUE))),
    ActionSpec("goBack"),
    ActionSpec("refresh"),
    ActionSpec("close"),
    ActionSpec("selectWindow", (_a("windowID", ArgRole.WINDOW),)),
    ActionSpec("selectPopUp", (_a("windowID", ArgRole.WINDOW),)),
    ActionSpec("deselectPopUp"),
    ActionSpec("selectFrame", (_a("locator", ArgRole.FRAME),)),
    ActionSpec("windowFocus"),
    ActionSpec("windowMaximize"),
    # Mouse
    ActionSpec("click", (LOCATOR,)),
    ActionSpec("doubleClick", (LOCATOR,)),
    ActionSpec("contextMenu", (LOCATOR,)),
    ActionSpec("clickAt", (LOCATOR, COORD)),
    ActionSpec("doubleClickAt", (LOCATOR, COORD)),
    ActionSpec("contextMenuAt", (LOCATOR, COORD)),
    ActionSpec("mouseOver", (LOCATOR,)),
    ActionSpec("mouseOut", (LOCATOR,)),
    ActionSpec("mouseDown", (LOCATOR,)),
    ActionSpec("mouseUp", (LOCATOR,)),
    ActionSpec("mouseMove", (LOCATOR,)),
    ActionSpec("mouseDownAt", (LOCATOR, COORD)),
    ActionSpec("mouseUpAt", (LOCATOR, COORD)),
    ActionSpec("mouseMoveAt", (LOCATOR, COORD)),
    ActionSpec("dragAndDrop", (LOCATOR, _a("movementsString", ArgRole.VALUE))),
    ActionSpec(
        "dragAndDropToObject",
        (
            _a("locatorOfObjectToBeDragged", ArgRole.LOCATOR),
            _a("locatorOfDragDestinationObject", ArgRole.LOCATOR),
        ),
    ),
    ActionSpec("setMouseSpeed", (_a("pixels", ArgRole.NUMBER),)),
    # Keyboard and forms
    ActionSpec("type", (LOCATOR, _a("value", ArgRole.VALUE))),
    ActionSpec("typeKeys", (LOCATOR, _a("value", ArgRole.VALUE))),
    ActionSpec("keyPress", (LOCATOR, _a("keySequence", ArgRole.VALUE))),
    ActionSpec("keyDown", (LOCATOR, _a("keySequence", ArgRole.VALUE))),
    ActionSpec("keyUp", (LOCATOR, _a("keySequence", ArgRole.VALUE))),
    ActionSpec("keyPressNative", (_a("keycode", ArgRole.NUMBER),)),
    ActionSpec("keyDownNative", (_a("keycode", ArgRole.NUMBER),)),
    ActionSpec("keyUpNative", (_a("keycode", ArgRole.NUMBER),)),
    ActionSpec("altKeyDown"),
    ActionSpec("altKeyUp"),
    ActionSpec("controlKeyDown"),
    ActionSpec("controlKeyUp"),
    ActionSpec("shiftKeyDown"),
    ActionSpec("shiftKeyUp"),
    ActionSpec("metaKeyDown"),
    ActionSpec("metaKeyUp"),
    ActionSpec("select", (SELECT_LOCATOR, _a("optionLocator", ArgRole.OPTION))),
    ActionSpec("addSelection", (_a("locator", ArgRole.LOCATOR), _a("optionLocator", ArgRole.OPTION))),
    ActionSpec("removeSelection", (_a("locator", ArgRole.LOCATOR), _a("optionLocator", ArgRole.OPTION))),
    ActionSpec("removeAllSelections", (LOCATOR,)),
    ActionSpec("check", (LOCATOR,)),
    ActionSpec("uncheck", (LOCATOR,)),
    ActionSpec("submit", (_a("formLocator", ArgRole.LOCATOR),)),
    ActionSpec("focus", (LOCATOR,)),
    ActionSpec("fireEvent", (LOCATOR, _a("eventName", ArgRole.VALUE))),
    ActionSpec("setCursorPosition", (LOCATOR, _a("position", ArgRole.NUMBER))),
    ActionSpec("attachFile", (_a("fieldLocator", ArgRole.LOCATOR), _a("fileLocator", ArgRole.URL))),
    ActionSpec("highlight", (LOCATOR,)),
    # Dialogs and cookies
    ActionSpec("chooseCancelOnNextConfirmation"),
    ActionSpec("chooseOkOnNextConfirmation"),
    ActionSpec("answerOnNextPrompt", (_a("answer", ArgRole.VALUE),)),
    ActionSpec(
        "createCookie",
        (_a("nameValuePair", ArgRole.VALUE), _a("optionsString", ArgRole.VALUE)),
    ),
    ActionSpec("deleteCookie", (_a("name", ArgRole.VALUE), _a("optionsString", ArgRole.VALUE))),
    ActionSpec("deleteAllVisibleCookies"),
    # Scripts
    ActionSpec("runScript", (_a("script", ArgRole.SCRIPT),)),
    ActionSpec("addScript", (_a("scriptContent", ArgRole.SCRIPT), _a("scriptTagId", ArgRole.VALUE))),
    ActionSpec("removeScript", (_a("scriptTagId", ArgRole.VALUE),)),
    # Screenshots and server-side state
    ActionSpec("captureScreenshot", (_a("filename", ArgRole.VALUE),)),
    ActionSpec(
        "captureEntirePageScreenshot",
        (_a("filename", ArgRole.VALUE), _a("kwargs", ArgRole.VALUE)),
    ),
    ActionSpec("captureScreenshotToString", value_type=ValueType.STRING),
    ActionSpec(
        "captureEntirePageScreenshotToString",
        (_a("kwargs", ArgRole.VALUE),),
        value_type=ValueType.STRING,
    ),
    ActionSpec(
        "retrieveLastRemoteControlLogs",
        and_wait=False,
        value_type=ValueType.STRING,
    ),
    ActionSpec("setContext", (_a("context", ArgRole.VALUE),)),
    ActionSpec("setBrowserLogLevel", (_a("logLevel", ArgRole.VALUE),)),
    ActionSpec("setTimeout", (TIMEOUT,)),
    ActionSpec("setSpeed", (_a("value", ArgRole.NUMBER),)),
    # Server-side waits
    ActionSpec("waitForCondition", (_a("script", ArgRole.SCRIPT), TIMEOUT), and_wait=False),
    ActionSpec("waitForPageToLoad", (TIMEOUT,), and_wait=False),
    ActionSpec(
        "waitForFrameToLoad",
        (_a("frameAddress", ArgRole.VALUE), TIMEOUT),
        and_wait=False,
    ),
    ActionSpec("waitForPopUp", (_a("windowID", ArgRole.VALUE), TIMEOUT), and_wait=False),
    # Client-side
    ActionSpec(
        "store",
        (_a("expression", ArgRole.VALUE), VARIABLE_NAME),
        and_wait=False,
        local=True,
    ),
    ActionSpec("echo", (_a("message", ArgRole.VALUE),), and_wait=False, local=True),
    ActionSpec("pause", (_a("waitTime", ArgRole.NUMBER),), and_wait=False, local=True),
)


S, A, N, B = ValueType.STRING, ValueType.STRING_ARRAY, ValueType.NUMBER, ValueType.BOOLEAN

CAPABILITIES: tuple[Capability, ...] = (
    # Page and dialogs
    Capability("Title", S),
    Capability("Location", S),
    Capability("BodyText", S),
    Capability("HtmlSource", S),
    Capability("Alert", S),
    Capability("Confirmation", S),
    Capability("Prompt", S),
    Capability("AlertPresent", B),
    Capability("ConfirmationPresent", B),
    Capability("PromptPresent", B),
    Capability("TextPresent", B, (_a("pattern", ArgRole.PATTERN),)),
    Capability("Speed", N),
    Capability("MouseSpeed", N),
    # Elements
    Capability("Text", S, (LOCATOR,)),
    Capability("Value", S, (LOCATOR,)),
    Capability("Attribute", S, (_a("attributeLocator", ArgRole.ATTRIBUTE),)),
    Capability("Table", S, (_a("tableCellAddress", ArgRole.CELL),)),
    Capability("ElementPresent", B, (LOCATOR,)),
    Capability("Visible", B, (LOCATOR,)),
    Capability("Editable", B, (LOCATOR,)),
    Capability("Checked", B, (LOCATOR,)),
    Capability(
        "Ordered",
        B,
        (_a("locator1", ArgRole.LOCATOR), _a("locator2", ArgRole.LOCATOR)),
    ),
    Capability("ElementHeight", N, (LOCATOR,)),
    Capability("ElementWidth", N, (LOCATOR,)),
    Capability("ElementIndex", N, (LOCATOR,)),
    Capability("ElementPositionLeft", N, (LOCATOR,)),
    Capability("ElementPositionTop", N, (LOCATOR,)),
    Capability("CursorPosition", N, (LOCATOR,)),
    Capability("XpathCount", N, (_a("xpath", ArgRole.VALUE),)),
    Capability("CssCount", N, (_a("css", ArgRole.VALUE),)),
    # Select elements
    Capability("SelectedLabel", S, (SELECT_LOCATOR,)),
    Capability("SelectedValue", S, (SELECT_LOCATOR,)),
    Capability("SelectedIndex", S, (SELECT_LOCATOR,)),
    Capability("SelectedId", S, (SELECT_LOCATOR,)),
    Capability("SelectedLabels", A, (SELECT_LOCATOR,)),
    Capability("SelectedValues", A, (SELECT_LOCATOR,)),
    Capability("SelectedIndexes", A, (SELECT_LOCATOR,)),
    Capability("SelectedIds", A, (SELECT_LOCATOR,)),
    Capability("SelectOptions", A, (SELECT_LOCATOR,)),
    Capability("SomethingSelected", B, (SELECT_LOCATOR,)),
    # Collections and windows
    Capability("AllButtons", A),
    Capability("AllFields", A),
    Capability("AllLinks", A),
    Capability("AllWindowIds", A),
    Capability("AllWindowNames", A),
    Capability("AllWindowTitles", A),
    Capability("AttributeFromAllWindows", A, (_a("attributeName", ArgRole.VALUE),)),
    Capability(
        "WhetherThisFrameMatchFrameExpression",
        B,
        (_a("currentFrameString", ArgRole.VALUE), _a("target", ArgRole.VALUE)),
        prefix="get",
    ),
    Capability(
        "WhetherThisWindowMatchWindowExpression",
        B,
        (_a("currentWindowString", ArgRole.VALUE), _a("target", ArgRole.VALUE)),
        prefix="get",
    ),
    # Cookies and scripting
    Capability("Cookie", S),
    Capability("CookieByName", S, (_a("name", ArgRole.VALUE),)),
    Capability("CookiePresent", B, (_a("name", ArgRole.VALUE),)),
    Capability("Eval", S, (_a("script", ArgRole.SCRIPT),)),
    Capability("Expression", S, (_a("expression", ArgRole.VALUE),)),
)

del S, A, N, B


class CommandCatalog:
    """Lookup table from logical command name to CatalogEntry."""

    def __init__(
        self,
        actions: Iterable[ActionSpec] = BASE_ACTIONS,
        capabilities: Iterable[Capability] = CAPABILITIES,
    ) -> None:
        self._entries: dict[str, CatalogEntry] = {}
        self._aliases: dict[str, str] = {}
        for action in actions:
            self._add_action(action)
        for capability in capabilities:
            self._add_capability(capability)

    def _register(self, entry: CatalogEntry) -> None:
        if entry.name in self._entries:
            raise ValueError(f"Duplicate command in catalog: {entry.name}")
        self._entries[entry.name] = entry
        self._aliases.setdefault(snake_case(entry.name), entry.name)

    def _add_action(self, action: ActionSpec) -> None:
        self._register(
            CatalogEntry(
                name=action.name,
                family=CommandFamily.ACTION,
                base=action.name,
                arguments=action.arguments,
                value_type=action.value_type,
                local=action.local,
                base_arity=len(action.arguments),
            )
        )
        if action.and_wait:
            name = f"{action.name}AndWait"
            self._register(
                CatalogEntry(
                    name=name,
                    family=family_of(name),
                    base=action.name,
                    arguments=action.arguments,
                    value_type=action.value_type,
                    base_arity=len(action.arguments),
                )
            )

    def _add_capability(self, capability: Capability) -> None:
        base = capability.accessor_name
        names = [base, f"store{capability.name}"]
        for prefix, _, _ in _CHECK_PREFIXES:
            names.append(f"{prefix}{capability.name}")
            names.extend(_negated_names(prefix, capability))

        for name in names:
            family = family_of(name)
            arguments = capability.arguments
            if family == CommandFamily.STORE:
                arguments = arguments + (VARIABLE_NAME,)
            elif family.is_check and capability.value_type != ValueType.BOOLEAN:
                arguments = arguments + (EXPECTED_PATTERN,)
            self._register(
                CatalogEntry(
                    name=name,
                    family=family,
                    base=base,
                    arguments=arguments,
                    value_type=capability.value_type,
                    base_arity=len(capability.arguments),
                )
            )

    def resolve_name(self, name: str) -> str:
        """Map a camelCase or snake_case name to its canonical catalog name."""
        if name in self._entries:
            return name
        if name in self._aliases:
            return self._aliases[name]
        raise UnknownCommandError(name)

    def lookup(self, name: str) -> CatalogEntry:
        """
        Get the entry for a logical command.

        Raises:
            UnknownCommandError: If the name is not in the catalog
        """
        return self._entries[self.resolve_name(name)]

    def names(self, family: CommandFamily | None = None) -> list[str]:
        return sorted(
            name for name, entry in self._entries.items()
            if family is None or entry.family == family
        )

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and (name in self._entries or name in self._aliases)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CATALOG = CommandCatalog()
