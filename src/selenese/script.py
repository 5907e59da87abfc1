"""
YAML script format for Selenese command sequences.

A script is the classic three-column table (command, target, value) written as
YAML, or steps with an explicit ``args`` list:

    name: Login
    variables:
      user: alice
    settings:
      wait_timeout_ms: 10000
    steps:
      - command: open
        target: /login
      - command: type
        target: id=username
        value: ${user}
      - command: clickAndWait
        target: css=button[type=submit]
      - command: assertTitle
        args: ["glob:Welcome*"]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import structlog
import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from selenese.catalog import DEFAULT_CATALOG, CatalogEntry, CommandCatalog
from selenese.errors import UnknownCommandError
from selenese.values import stringify
from selenese.variables import VariableStore

logger = structlog.get_logger(__name__)


class ScriptParseError(Exception):
    """Raised when a script cannot be loaded or fails validation."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        location = ""
        if line is not None:
            location = f" at line {line}"
            if column is not None:
                location += f", column {column}"
        super().__init__(f"{message}{location}")


def _as_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return stringify(value)
    return value


class ScriptStep(BaseModel):
    """One Selenese command invocation."""

    model_config = ConfigDict(extra="forbid")

    command: str = Field(min_length=1)
    target: str | None = None
    value: str | None = None
    args: list[str] | None = None
    name: str | None = None

    @field_validator("target", "value", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("args", mode="before")
    @classmethod
    def coerce_args(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_as_text(item) for item in v]
        return v

    @model_validator(mode="after")
    def validate_argument_style(self) -> Self:
        if self.args is not None and (self.target is not None or self.value is not None):
            raise ValueError("Use either target/value or args, not both")
        return self

    def arguments(self, arity: int) -> list[str]:
        """
        Positional arguments for a command taking ``arity`` arguments.

        With target/value columns, missing trailing columns are empty strings,
        the same as an empty cell in the three-column table.
        """
        if self.args is not None:
            return list(self.args)
        columns = [self.target, self.value]
        filled = max((i + 1 for i, c in enumerate(columns) if c is not None), default=0)
        return [c or "" for c in columns[: max(arity, filled)]]

    @property
    def label(self) -> str:
        return self.name or self.command


class Script(BaseModel):
    """A named sequence of steps with optional variables and settings."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    description: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)
    steps: list[ScriptStep] = Field(min_length=1)
    source_file: str | None = None

    @field_validator("variables")
    @classmethod
    def validate_variable_names(cls, v: dict[str, Any]) -> dict[str, Any]:
        for key in v:
            if not VariableStore.NAME_PATTERN.match(key):
                raise ValueError(f"Invalid variable name: {key!r}")
        return v


class ScriptValidator:
    """Checks every step against the command catalog."""

    def __init__(self, catalog: CommandCatalog | None = None) -> None:
        self._catalog = catalog if catalog is not None else DEFAULT_CATALOG

    def validate(self, script: Script) -> list[str]:
        errors: list[str] = []
        for i, step in enumerate(script.steps):
            prefix = f"Step {i + 1} ({step.label})"
            try:
                entry = self._catalog.lookup(step.command)
            except UnknownCommandError as e:
                errors.append(f"{prefix}: {e.message}")
                continue
            errors.extend(f"{prefix}: {error}" for error in self._validate_arity(step, entry))
        return errors

    def _validate_arity(self, step: ScriptStep, entry: CatalogEntry) -> list[str]:
        supplied = step.arguments(entry.arity)
        if len(supplied) == entry.arity:
            return []
        expected = ", ".join(entry.argument_names) or "no arguments"
        return [f"{entry.name} takes {entry.arity} argument(s) ({expected}), got {len(supplied)}"]


class ScriptParser:
    """Loads and validates YAML scripts."""

    def __init__(self, catalog: CommandCatalog | None = None) -> None:
        self._validator = ScriptValidator(catalog)
        self._log = logger.bind(component="script_parser")

    def parse_file(self, path: str | Path) -> Script:
        """Parse a YAML script file."""
        file_path = Path(path)
        if not file_path.exists():
            raise ScriptParseError(f"File not found: {file_path}")
        if not file_path.is_file():
            raise ScriptParseError(f"Path is not a file: {file_path}")

        self._log.info("Parsing script", path=str(file_path))
        content = file_path.read_text(encoding="utf-8")
        return self.parse_string(content, source_file=str(file_path))

    def parse_string(self, content: str, source_file: str | None = None) -> Script:
        """Parse YAML script content."""
        try:
            raw_data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            if mark:
                raise ScriptParseError(str(e), line=mark.line + 1, column=mark.column + 1) from e
            raise ScriptParseError(f"Invalid YAML: {e}") from e

        if not isinstance(raw_data, dict):
            raise ScriptParseError("YAML root must be a mapping/dictionary")
        if source_file is not None:
            raw_data.setdefault("source_file", source_file)

        try:
            script = Script.model_validate(raw_data)
        except ValidationError as e:
            error_messages = []
            for error in e.errors():
                loc = ".".join(str(x) for x in error["loc"])
                error_messages.append(f"  {loc}: {error['msg']}")
            raise ScriptParseError("Validation failed:\n" + "\n".join(error_messages)) from e

        validation_errors = self._validator.validate(script)
        if validation_errors:
            raise ScriptParseError(
                "Semantic validation failed:\n" + "\n".join(f"  - {e}" for e in validation_errors)
            )

        self._log.info("Parsed script", name=script.name, step_count=len(script.steps))
        return script

    def parse_directory(self, directory: str | Path, pattern: str = "**/*.yaml") -> list[Script]:
        """Parse every script under a directory, in path order."""
        dir_path = Path(directory)
        if not dir_path.is_dir():
            raise ScriptParseError(f"Directory not found: {dir_path}")
        return [
            self.parse_file(file_path)
            for file_path in sorted(dir_path.glob(pattern))
            if not file_path.name.startswith(".")
        ]
