"""Tests for the YAML script format."""

from __future__ import annotations

from pathlib import Path

import pytest

from selenese.script import Script, ScriptParseError, ScriptParser, ScriptStep


class TestScriptStep:
    """Tests for ScriptStep."""

    def test_target_and_value_columns(self) -> None:
        """Test the three-column form."""
        step = ScriptStep(command="type", target="id=q", value="selenium")
        assert step.arguments(2) == ["id=q", "selenium"]

    def test_missing_columns_are_empty(self) -> None:
        """Test that empty cells become empty strings."""
        assert ScriptStep(command="type", target="id=q").arguments(2) == ["id=q", ""]
        assert ScriptStep(command="getTitle").arguments(0) == []

    def test_extra_columns_are_kept(self) -> None:
        """Test that a filled column is never dropped."""
        step = ScriptStep(command="click", target="id=go", value="oops")
        assert step.arguments(1) == ["id=go", "oops"]

    def test_args_list(self) -> None:
        """Test the explicit args form."""
        step = ScriptStep(command="storeEval", args=["1 + 1", "sum"])
        assert step.arguments(2) == ["1 + 1", "sum"]

    def test_scalars_coerced_to_text(self) -> None:
        """Test YAML numbers and booleans as arguments."""
        step = ScriptStep(command="pause", target=500)
        assert step.target == "500"
        assert ScriptStep(command="store", args=[True, "flag"]).args == ["true", "flag"]

    def test_args_and_columns_are_exclusive(self) -> None:
        """Test the two argument styles cannot be mixed."""
        with pytest.raises(ValueError, match="either target/value or args"):
            ScriptStep(command="type", target="id=q", args=["x"])

    def test_label(self) -> None:
        """Test the display label."""
        assert ScriptStep(command="open", target="/").label == "open"
        assert ScriptStep(command="open", target="/", name="Home").label == "Home"


class TestScriptModel:
    """Tests for the Script model."""

    def test_requires_steps(self) -> None:
        """Test that a script needs at least one step."""
        with pytest.raises(ValueError):
            Script(name="Empty", steps=[])

    def test_variable_names_validated(self) -> None:
        """Test invalid variable names."""
        with pytest.raises(ValueError, match="Invalid variable name"):
            Script(name="Bad", variables={"has space": 1}, steps=[ScriptStep(command="refresh")])


class TestScriptParser:
    """Tests for ScriptParser."""

    def test_parse_sample(self, sample_script: str) -> None:
        """Test parsing a full script."""
        script = ScriptParser().parse_string(sample_script)

        assert script.name == "Login"
        assert script.variables == {"user": "alice"}
        assert len(script.steps) == 5
        assert script.steps[1].name == "Enter user name"
        assert script.steps[1].value == "${user}"
        assert script.steps[4].args == ["glob:Welcome*"]

    def test_unknown_command(self) -> None:
        """Test that unknown commands fail validation."""
        content = "name: Bad\nsteps:\n  - command: frobnicate\n    target: x\n"
        with pytest.raises(ScriptParseError, match="Unknown command: frobnicate"):
            ScriptParser().parse_string(content)

    def test_missing_argument(self) -> None:
        """Test an arity error from a short args list."""
        content = "name: Bad\nsteps:\n  - command: click\n    args: []\n"
        with pytest.raises(ScriptParseError, match="click takes 1 argument"):
            ScriptParser().parse_string(content)

    def test_too_many_arguments(self) -> None:
        """Test an arity error from an extra column."""
        content = "name: Bad\nsteps:\n  - command: refresh\n    target: now\n"
        with pytest.raises(ScriptParseError, match="Step 1 \\(refresh\\)"):
            ScriptParser().parse_string(content)

    def test_schema_errors(self) -> None:
        """Test pydantic validation errors are reported by location."""
        content = "name: Bad\nsteps:\n  - command: open\n    target: /\n    colour: red\n"
        with pytest.raises(ScriptParseError, match="steps.0.colour"):
            ScriptParser().parse_string(content)

    def test_invalid_yaml(self) -> None:
        """Test YAML syntax errors carry a location."""
        with pytest.raises(ScriptParseError) as exc_info:
            ScriptParser().parse_string("name: test\n  steps: [")
        assert exc_info.value.line is not None

    def test_root_must_be_mapping(self) -> None:
        """Test non-mapping documents."""
        with pytest.raises(ScriptParseError, match="mapping"):
            ScriptParser().parse_string("- command: open\n")

    def test_parse_file(self, tmp_path: Path, sample_script: str) -> None:
        """Test parsing from disk records the source file."""
        path = tmp_path / "login.yaml"
        path.write_text(sample_script, encoding="utf-8")
        script = ScriptParser().parse_file(path)
        assert script.source_file == str(path)

    def test_parse_missing_file(self, tmp_path: Path) -> None:
        """Test a path that does not exist."""
        with pytest.raises(ScriptParseError, match="File not found"):
            ScriptParser().parse_file(tmp_path / "missing.yaml")

    def test_parse_directory(self, tmp_path: Path, sample_script: str) -> None:
        """Test loading every script in a directory."""
        (tmp_path / "b.yaml").write_text(sample_script.replace("name: Login", "name: B"))
        (tmp_path / "a.yaml").write_text(sample_script.replace("name: Login", "name: A"))
        (tmp_path / ".hidden.yaml").write_text("not: a script")
        scripts = ScriptParser().parse_directory(tmp_path)
        assert [s.name for s in scripts] == ["A", "B"]
