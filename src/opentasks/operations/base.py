"""
Helpers shared by the built-in operations.
"""

import re
from collections.abc import Iterable, Sequence

from opentasks.domain.decorators import Metadata
from opentasks.domain.exceptions import ValidationError
from opentasks.domain.interfaces import WorkflowContextInterface
from opentasks.domain.models import ReferenceHandle


def split_flags(
    args: Sequence[str], flags: Iterable[str]
) -> tuple[list[str], set[str]]:
    """Separate the known boolean flags from positional arguments."""
    known = set(flags)
    positional = [arg for arg in args if arg not in known]
    present = {arg for arg in args if arg in known}
    return positional, present


def require_args(name: str, args: Sequence[str], usage: str, count: int = 1) -> None:
    if len(args) < count:
        raise ValidationError(f"{name} requires {usage}")


def require_refs(name: str, refs: Sequence[ReferenceHandle], count: int = 1) -> None:
    if len(refs) < count:
        plural = "s" if count > 1 else ""
        raise ValidationError(f"{name} requires at least {count} --ref argument{plural}")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError(f"Invalid regex pattern '{pattern}': {e}") from e


def provenance(name: str, refs: Sequence[ReferenceHandle], **extra: object) -> Metadata:
    """Metadata recording which operation produced a value from which inputs."""
    return Metadata({"operation": name, "inputs": [ref.label for ref in refs], **extra})


def reference_lookup(refs: Sequence[ReferenceHandle], context: WorkflowContextInterface):
    """
    Template lookup over the given references.

    A placeholder names a reference by token, id or position (``{{0}}``);
    anything else falls back to the tokens bound in the context.
    """
    values: dict[str, str] = {}
    for position, ref in enumerate(refs):
        values.setdefault(str(position), ref.text)
        values[ref.ref_id] = ref.text
    for ref in refs:
        if ref.token:
            values[ref.token] = ref.text

    def lookup(name: str) -> str | None:
        if name in values:
            return values[name]
        return context.lookup(name)

    return lookup
