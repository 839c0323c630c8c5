"""
Template substitution over resolved references.

Placeholders have the form ``{{name}}``. Substitution is a single pass:
text inserted for one placeholder is never scanned for further placeholders.
"""

import re
from collections.abc import Callable

from opentasks.domain.exceptions import ReferenceNotFound

PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def placeholders(template: str) -> list[str]:
    """Placeholder names in order of appearance (duplicates kept)."""
    return [m.group(1) for m in PLACEHOLDER_RE.finditer(template)]


def substitute(template: str, lookup: Callable[[str], str | None]) -> str:
    """
    Replace every ``{{name}}`` with ``lookup(name)``.

    Args:
        template: Text containing placeholders
        lookup: Returns the replacement text, or None when the name is unbound

    Returns:
        The substituted text

    Raises:
        ReferenceNotFound: On the first placeholder whose name is unbound
    """

    def replacement(match: re.Match[str]) -> str:
        name = match.group(1)
        value = lookup(name)
        if value is None:
            raise ReferenceNotFound(name, f"Unresolved template token: {name}")
        return value

    return PLACEHOLDER_RE.sub(replacement, template)
