"""
Stored variables and ``${name}`` substitution.

Values captured by store* commands live here for the rest of the session and
are substituted into every later command argument before dispatch.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Any

import structlog

from selenese.errors import InvalidArgumentError, NameResolutionError
from selenese.values import stringify

logger = structlog.get_logger(__name__)

StoredValue = str | list[str] | bool | int | float


class VariableStore:
    """Session-scoped mapping of variable name to last stored value."""

    VARIABLE_PATTERN = re.compile(r"\$\{([a-zA-Z_][a-zA-Z0-9_]*)\}")
    NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
    JAVASCRIPT_MARKER = "javascript{"

    def __init__(self, initial: Mapping[str, StoredValue] | None = None) -> None:
        self._values: dict[str, StoredValue] = {}
        self._log = logger.bind(component="variable_store")
        if initial:
            self.update(initial)

    def set(self, name: str, value: StoredValue) -> None:
        """Create or overwrite a variable."""
        if not self.NAME_PATTERN.match(name):
            raise InvalidArgumentError(f"Invalid variable name: {name!r}")
        self._values[name] = value
        self._log.debug("Stored variable", name=name)

    def get(self, name: str) -> StoredValue:
        """
        Look up a variable.

        Raises:
            NameResolutionError: If the name was never stored
        """
        try:
            return self._values[name]
        except KeyError:
            raise NameResolutionError(name) from None

    def update(self, values: Mapping[str, StoredValue]) -> None:
        for name, value in values.items():
            self.set(name, value)

    def clear(self) -> None:
        self._values.clear()

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def substitute(self, template: str) -> str:
        """
        Replace every ``${name}`` in template with its stored value.

        Arguments using ``javascript{...}`` are forwarded untouched for remote
        evaluation and may not also contain ``${name}`` references.

        Raises:
            NameResolutionError: If a referenced variable is not defined
            InvalidArgumentError: If javascript{...} and ${name} are combined
        """
        has_variables = self.VARIABLE_PATTERN.search(template) is not None
        if self.JAVASCRIPT_MARKER in template:
            if has_variables:
                raise InvalidArgumentError(
                    f"javascript{{...}} and ${{name}} cannot be combined in one argument: {template!r}"
                )
            return template
        if not has_variables:
            return template

        def replace_var(match: re.Match[str]) -> str:
            return stringify(self.get(match.group(1)))

        return self.VARIABLE_PATTERN.sub(replace_var, template)
