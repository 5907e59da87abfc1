"""Tests for the variable store."""

from __future__ import annotations

import pytest

from selenese.errors import InvalidArgumentError, NameResolutionError
from selenese.variables import VariableStore


class TestVariableStore:
    """Tests for storing and reading variables."""

    def test_set_and_get(self) -> None:
        """Test basic storage."""
        store = VariableStore()
        store.set("user", "alice")
        assert store.get("user") == "alice"
        assert "user" in store
        assert len(store) == 1

    def test_overwrite_keeps_last_value(self) -> None:
        """Test that a later store wins."""
        store = VariableStore({"count": 1})
        store.set("count", 2)
        assert store.get("count") == 2

    def test_undefined_variable(self) -> None:
        """Test lookup of a name that was never stored."""
        store = VariableStore()
        with pytest.raises(NameResolutionError, match="Variable 'missing' is not defined"):
            store.get("missing")

    @pytest.mark.parametrize("name", ["", "1abc", "has space", "dash-ed", "${x}"])
    def test_invalid_names_rejected(self, name: str) -> None:
        """Test variable name validation."""
        with pytest.raises(InvalidArgumentError):
            VariableStore().set(name, "value")

    def test_as_dict_is_a_copy(self) -> None:
        """Test that callers cannot mutate the store through as_dict."""
        store = VariableStore({"a": "1"})
        snapshot = store.as_dict()
        snapshot["b"] = "2"
        assert "b" not in store

    def test_clear(self) -> None:
        """Test clearing all variables."""
        store = VariableStore({"a": "1", "b": "2"})
        store.clear()
        assert list(store) == []


class TestSubstitution:
    """Tests for ${name} substitution."""

    def test_single_reference(self) -> None:
        """Test a reference embedded in text."""
        store = VariableStore({"name": "Bob"})
        assert store.substitute("Hello ${name}!") == "Hello Bob!"

    def test_multiple_references(self) -> None:
        """Test several references in one argument."""
        store = VariableStore({"first": "Ada", "last": "Lovelace"})
        assert store.substitute("${first} ${last}") == "Ada Lovelace"

    def test_non_string_values_use_wire_form(self) -> None:
        """Test booleans, numbers and arrays in substitutions."""
        store = VariableStore({"flag": True, "count": 3, "items": ["a", "b,c"]})
        assert store.substitute("${flag}/${count}/${items}") == "true/3/a,b\\,c"

    def test_text_without_references_unchanged(self) -> None:
        """Test that plain text and bare dollars pass through."""
        store = VariableStore()
        assert store.substitute("costs $5 and $name") == "costs $5 and $name"

    def test_undefined_reference_raises(self) -> None:
        """Test that a missing variable fails the substitution."""
        with pytest.raises(NameResolutionError):
            VariableStore().substitute("Hi ${nobody}")

    def test_javascript_is_forwarded_untouched(self) -> None:
        """Test that javascript{...} arguments are not substituted."""
        store = VariableStore({"x": "1"})
        assert store.substitute("javascript{storedVars['x'] + 1}") == "javascript{storedVars['x'] + 1}"

    def test_javascript_with_reference_rejected(self) -> None:
        """Test that the two expansion styles cannot be mixed."""
        store = VariableStore({"x": "1"})
        with pytest.raises(InvalidArgumentError, match="cannot be combined"):
            store.substitute("javascript{${x} + 1}")

    def test_substitution_is_single_pass(self) -> None:
        """Test that substituted text is not re-expanded."""
        store = VariableStore({"a": "${b}", "b": "nested"})
        assert store.substitute("${a}") == "${b}"
