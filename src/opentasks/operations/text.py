"""
Text operations - transformations of referenced values.

Only ``template`` reads a file, and only when given a PATH. None start
processes.
"""

import json
from collections.abc import Sequence
from typing import Any

from opentasks.domain.decorators import Token
from opentasks.domain.exceptions import ValidationError
from opentasks.domain.interfaces import OperationInterface, WorkflowContextInterface
from opentasks.domain.models import MemoryEntry, Output, ReferenceHandle
from opentasks.domain.templates import substitute
from opentasks.operations.base import (
    compile_pattern,
    provenance,
    reference_lookup,
    require_args,
    require_refs,
    split_flags,
)


class ReplaceOperation(OperationInterface):
    """
    Substitutes ``{{name}}`` placeholders in a template.

    Placeholders resolve against the ``--ref`` inputs first (by token, id or
    position), then against any token bound in this invocation.
    """

    name = "replace"
    description = "Substitute {{token}} placeholders in a template"
    examples = (
        'open-tasks replace "Deploy to {{env}} at {{domain}}" --ref env --ref domain',
        'open-tasks replace "Hello {{0}}" --ref name',
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a TEMPLATE argument")
        template = " ".join(args)
        result = substitute(template, reference_lookup(refs, context))
        return [Output(result, (provenance(self.name, refs),))]


class ExtractOperation(OperationInterface):
    """
    Extracts text from the first reference with a regular expression.

    Capture groups are joined with ", "; without groups the whole match is
    used. ``--all`` extracts every match, one per line.
    """

    name = "extract"
    description = "Extract text using a regex pattern"
    examples = (
        'open-tasks extract "\\d+" --ref input',
        'open-tasks extract "\\w+@\\w+\\.\\w+" --ref text --all',
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        positional, flags = split_flags(args, {"--all"})
        require_args(self.name, positional, "a PATTERN argument")
        require_refs(self.name, refs)

        pattern = positional[0]
        regex = compile_pattern(pattern)
        text = refs[0].text

        if "--all" in flags:
            matches = list(regex.finditer(text))
        else:
            first = regex.search(text)
            matches = [first] if first else []

        if not matches:
            raise ValidationError(f"No match found for pattern: {pattern}")

        lines = []
        for match in matches:
            if match.groups():
                lines.append(", ".join(group or "" for group in match.groups()))
            else:
                lines.append(match.group(0))

        return [
            Output(
                "\n".join(lines),
                (provenance(self.name, refs, pattern=pattern, matches=len(matches)),),
            )
        ]


class MatchOperation(OperationInterface):
    """
    Binds each capture group of a regex match to its own token.

    Groups are paired with the NAME arguments in order; groups that did not
    participate in the match and surplus names are skipped.
    """

    name = "match"
    description = "Match a regex and bind capture groups to tokens"
    examples = (
        'open-tasks match "(\\w+) (\\w+), age (\\d+)" first last age --ref person',
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a PATTERN and at least one NAME", count=2)
        require_refs(self.name, refs)

        pattern, names = args[0], args[1:]
        match = compile_pattern(pattern).search(refs[0].text)
        if match is None:
            raise ValidationError(f"No match found for pattern: {pattern}")

        tag = provenance(self.name, refs, pattern=pattern)
        return [
            Output(value, (tag, Token(name)))
            for value, name in zip(match.groups(), names, strict=False)
            if value is not None
        ]


class JoinOperation(OperationInterface):
    """Concatenates the referenced values in order."""

    name = "join"
    description = "Join referenced values with an optional separator"
    examples = (
        "open-tasks join --ref header --ref body",
        'open-tasks join ", " --ref first --ref second',
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_refs(self.name, refs)
        separator = args[0] if args else ""
        result = separator.join(ref.text for ref in refs)
        return [Output(result, (provenance(self.name, refs),))]


class TemplateOperation(OperationInterface):
    """
    Renders a stored or file-based template.

    With a PATH argument the template is read from that file and every
    ``--ref`` is a value. Without one the first ``--ref`` is the template and
    the rest are values. Placeholders resolve as for ``replace``.
    """

    name = "template"
    description = "Render a template from a file or a reference"
    examples = (
        "open-tasks template ./deploy.tpl --ref env --ref domain",
        "open-tasks template --ref tpl --ref name",
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        if args:
            source = await context.load(args[0])
            template = source.content
            values = refs
        else:
            require_refs(self.name, refs)
            template = refs[0].text
            values = refs[1:]

        if isinstance(template, bytes):
            template = template.decode("utf-8", errors="replace")
        result = substitute(template, reference_lookup(values, context))
        return [Output(result, (provenance(self.name, refs),))]


class JsonTransformOperation(OperationInterface):
    """
    Selects part of a JSON document held by the first reference.

    PATH is a dotted path such as ``items.0.name``; an empty path or ``.``
    selects the whole document. String results are kept as-is, anything
    else is re-serialized as indented JSON.
    """

    name = "json-transform"
    description = "Select a value from a JSON reference by dotted path"
    examples = (
        "open-tasks json-transform user.name --ref response",
        "open-tasks json-transform items.0 --ref payload --token first",
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_refs(self.name, refs)
        path = args[0] if args else ""
        source = refs[0]

        def render(content: Any) -> str:
            if isinstance(content, bytes):
                content = content.decode("utf-8", errors="replace")
            try:
                document = json.loads(content)
            except json.JSONDecodeError as e:
                raise ValidationError(
                    f"Failed to parse JSON from {source.label}: {e}"
                ) from e
            selected = select_path(document, path)
            if isinstance(selected, str):
                return selected
            return json.dumps(selected, indent=2, ensure_ascii=False)

        entry = MemoryEntry(source.ref_id, source.content, source.created_at)
        derived = await context.transform(entry, render)
        return [Output(derived.content, (provenance(self.name, refs, path=path),))]


def select_path(document: Any, path: str) -> Any:
    """Walk a dotted path through nested objects and arrays."""
    current = document
    for part in (p for p in path.split(".") if p):
        if isinstance(current, dict):
            if part not in current:
                raise ValidationError(f"Key '{part}' not found in JSON path '{path}'")
            current = current[part]
        elif isinstance(current, list):
            try:
                current = current[int(part)]
            except (ValueError, IndexError) as e:
                raise ValidationError(
                    f"Invalid index '{part}' in JSON path '{path}'"
                ) from e
        else:
            raise ValidationError(f"Cannot descend into '{part}' in JSON path '{path}'")
    return current
