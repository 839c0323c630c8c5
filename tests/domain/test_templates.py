"""Tests for {{token}} template substitution."""

import pytest

from opentasks.domain.exceptions import ReferenceNotFound
from opentasks.domain.templates import placeholders, substitute


def lookup_from(values: dict[str, str]):
    return values.get


class TestSubstitute:
    """Tests for single-pass substitution."""

    def test_replaces_every_placeholder(self) -> None:
        """Both tokens are replaced in place."""
        result = substitute(
            "Deploy to {{env}} at {{domain}}",
            lookup_from({"env": "production", "domain": "example.com"}),
        )

        assert result == "Deploy to production at example.com"

    def test_repeated_placeholder(self) -> None:
        """The same token can appear more than once."""
        result = substitute("{{x}}-{{x}}", lookup_from({"x": "a"}))

        assert result == "a-a"

    def test_whitespace_inside_braces(self) -> None:
        """Spaces around the name are ignored."""
        result = substitute("{{ name }}!", lookup_from({"name": "hi"}))

        assert result == "hi!"

    def test_substituted_text_is_not_rescanned(self) -> None:
        """A value containing a placeholder is inserted literally."""
        result = substitute(
            "{{a}}", lookup_from({"a": "{{b}}", "b": "should not appear"})
        )

        assert result == "{{b}}"

    def test_text_without_placeholders_unchanged(self) -> None:
        """Plain text passes through."""
        assert substitute("no tokens here", lookup_from({})) == "no tokens here"

    def test_unresolved_placeholder_raises(self) -> None:
        """An unbound name raises ReferenceNotFound naming it."""
        with pytest.raises(ReferenceNotFound) as exc_info:
            substitute("Hello {{missing}}", lookup_from({}))

        assert exc_info.value.token == "missing"
        assert "missing" in str(exc_info.value)


class TestPlaceholders:
    """Tests for placeholder discovery."""

    def test_lists_names_in_order(self) -> None:
        assert placeholders("{{b}} and {{a}} and {{b}}") == ["b", "a", "b"]
