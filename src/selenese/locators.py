"""
Locator parsing for elements, options, windows and frames.

An element locator has the form ``strategy=argument``. Without a recognized
strategy prefix the strategy is inferred: ``dom`` for arguments starting with
``document.``, ``xpath`` for arguments starting with ``//`` and
``identifier`` otherwise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from selenese.errors import InvalidLocatorError


class LocatorStrategy(StrEnum):
    """Element location strategies understood by the remote endpoint."""

    IDENTIFIER = "identifier"
    ID = "id"
    NAME = "name"
    DOM = "dom"
    XPATH = "xpath"
    LINK = "link"
    CSS = "css"
    UI = "ui"


class FilterType(StrEnum):
    """Element filters allowed after a ``name=`` locator."""

    VALUE = "value"
    INDEX = "index"


class OptionStrategy(StrEnum):
    """Ways of picking an option inside a select element."""

    LABEL = "label"
    VALUE = "value"
    ID = "id"
    INDEX = "index"


class WindowStrategy(StrEnum):
    NAME = "name"
    TITLE = "title"
    VAR = "var"


_UNESCAPED_EQUALS = re.compile(r"(?<!\\)=")
_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_:][\w:.\-]*$")


@dataclass(frozen=True)
class ElementFilter:
    type: FilterType
    argument: str


@dataclass(frozen=True)
class Locator:
    """A parsed element locator."""

    strategy: LocatorStrategy
    argument: str
    filters: tuple[ElementFilter, ...] = ()

    @property
    def name(self) -> str:
        """The element name of a ``name=`` locator, without its filters."""
        tokens = self.argument.split()
        return tokens[0] if tokens else self.argument

    def __str__(self) -> str:
        return f"{self.strategy}={self.argument}"


@dataclass(frozen=True)
class AttributeLocator:
    """An ``elementLocator@attributeName`` address."""

    element: Locator
    attribute: str

    def __str__(self) -> str:
        return f"{self.element}@{self.attribute}"


@dataclass(frozen=True)
class TableCellAddress:
    """A ``tableLocator.row.column`` address (zero-based row and column)."""

    table: Locator
    row: int
    column: int

    def __str__(self) -> str:
        return f"{self.table}.{self.row}.{self.column}"


@dataclass(frozen=True)
class OptionLocator:
    strategy: OptionStrategy
    argument: str

    def __str__(self) -> str:
        return f"{self.strategy}={self.argument}"


@dataclass(frozen=True)
class WindowLocator:
    """A window locator; ``strategy`` is None for the main window."""

    strategy: WindowStrategy | None
    argument: str

    def __str__(self) -> str:
        if self.strategy is None:
            return "null"
        return f"{self.strategy}={self.argument}"


def _split_prefix(raw: str) -> tuple[str, str] | None:
    """Split on the first unescaped '=' into (prefix, rest)."""
    match = _UNESCAPED_EQUALS.search(raw)
    if match is None:
        return None
    return raw[: match.start()], raw[match.end():]


def parse_locator(raw: str) -> Locator:
    """
    Parse an element locator string.

    Raises:
        InvalidLocatorError: If the locator is empty or has an empty argument
    """
    if not raw or not raw.strip():
        raise InvalidLocatorError(raw, "locator is empty")

    split = _split_prefix(raw)
    if split is not None:
        prefix, argument = split
        try:
            strategy = LocatorStrategy(prefix)
        except ValueError:
            strategy = None
        if strategy is not None:
            if not argument:
                raise InvalidLocatorError(raw, f"missing argument for '{strategy}' strategy")
            filters = _parse_filters(raw, argument) if strategy == LocatorStrategy.NAME else ()
            return Locator(strategy=strategy, argument=argument, filters=filters)

    if raw.startswith("document."):
        return Locator(LocatorStrategy.DOM, raw)
    if raw.startswith("//"):
        return Locator(LocatorStrategy.XPATH, raw)
    return Locator(LocatorStrategy.IDENTIFIER, raw)


def _parse_filters(raw: str, argument: str) -> tuple[ElementFilter, ...]:
    tokens = argument.split()
    filters: list[ElementFilter] = []
    for token in tokens[1:]:
        split = _split_prefix(token)
        if split is None:
            filters.append(ElementFilter(FilterType.VALUE, token))
            continue
        prefix, value = split
        try:
            filter_type = FilterType(prefix)
        except ValueError:
            raise InvalidLocatorError(raw, f"unknown element filter '{prefix}'") from None
        if filter_type == FilterType.INDEX and not value.isdigit():
            raise InvalidLocatorError(raw, f"index filter must be a non-negative integer, got {value!r}")
        filters.append(ElementFilter(filter_type, value))
    return tuple(filters)


def parse_attribute_locator(raw: str) -> AttributeLocator:
    """Parse ``elementLocator@attributeName``, splitting on the last '@'."""
    element, sep, attribute = raw.rpartition("@")
    if not sep or not element:
        raise InvalidLocatorError(raw, "attribute locator must look like 'locator@attribute'")
    if not _ATTRIBUTE_NAME.match(attribute):
        raise InvalidLocatorError(raw, f"invalid attribute name {attribute!r}")
    return AttributeLocator(element=parse_locator(element), attribute=attribute)


def parse_table_cell_address(raw: str) -> TableCellAddress:
    """Parse ``tableLocator.row.column`` with non-negative integer indices."""
    parts = raw.rsplit(".", 2)
    if len(parts) != 3 or not parts[0]:
        raise InvalidLocatorError(raw, "table cell address must look like 'locator.row.column'")
    table, row, column = parts
    if not (row.isdigit() and column.isdigit()):
        raise InvalidLocatorError(raw, "row and column must be non-negative integers")
    return TableCellAddress(table=parse_locator(table), row=int(row), column=int(column))


def parse_option_locator(raw: str) -> OptionLocator:
    """Parse an option locator; the default strategy is ``label``."""
    if not raw:
        raise InvalidLocatorError(raw, "option locator is empty")
    split = _split_prefix(raw)
    if split is not None:
        prefix, argument = split
        try:
            strategy = OptionStrategy(prefix)
        except ValueError:
            return OptionLocator(OptionStrategy.LABEL, raw)
        if strategy == OptionStrategy.INDEX and not argument.isdigit():
            raise InvalidLocatorError(raw, f"option index must be a non-negative integer, got {argument!r}")
        return OptionLocator(strategy, argument)
    return OptionLocator(OptionStrategy.LABEL, raw)


def parse_window_locator(raw: str) -> WindowLocator:
    """Parse a window locator; empty or ``null`` selects the main window."""
    if raw in ("", "null"):
        return WindowLocator(None, "")
    split = _split_prefix(raw)
    if split is not None:
        prefix, argument = split
        try:
            return WindowLocator(WindowStrategy(prefix), argument)
        except ValueError:
            pass
    return WindowLocator(WindowStrategy.NAME, raw)


def parse_frame_locator(raw: str) -> str:
    """
    Validate a frame locator and return its canonical form.

    ``relative=up|parent|top`` and ``index=n`` are frame-specific; anything
    else is an element locator for the frame element.
    """
    if raw.startswith("relative="):
        target = raw[len("relative="):]
        if target not in ("up", "parent", "top"):
            raise InvalidLocatorError(raw, "relative frame must be 'up', 'parent' or 'top'")
        return raw
    if raw.startswith("index="):
        if not raw[len("index="):].isdigit():
            raise InvalidLocatorError(raw, "frame index must be a non-negative integer")
        return raw
    return str(parse_locator(raw))
