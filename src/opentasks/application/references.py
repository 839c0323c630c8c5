"""
ReferenceManager: maps tokens and generated ids to reference handles.

Tokens are checked before ids. A token is bound to at most one handle at a
time; binding it again replaces the previous handle.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from opentasks.domain.exceptions import ReferenceNotFound, ValidationError
from opentasks.domain.models import Content, ReferenceHandle

logger = logging.getLogger(__name__)


class _Snapshot(NamedTuple):
    token: str | None
    output_file: Path | None
    created_at: datetime


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def validate_token(token: str) -> str:
    """
    Check that a caller-chosen token can be bound.

    Raises:
        ValidationError: If the token is blank or looks like a generated id
    """
    if not token or not token.strip():
        raise ValidationError("Token must not be empty")
    if is_uuid(token):
        raise ValidationError(
            f"Token '{token}' is a UUID; tokens must not look like reference ids"
        )
    return token


class ReferenceManager:
    """Registry of the handles published during one invocation."""

    def __init__(self) -> None:
        self._references: dict[str, ReferenceHandle] = {}
        self._deferred: dict[str, tuple[Callable[[], Content], _Snapshot]] = {}
        self._tokens: dict[str, str] = {}  # token -> ref_id

    def create_reference(
        self,
        entry_id: str,
        content: Content,
        token: str | None = None,
        output_file: Path | None = None,
        created_at: datetime | None = None,
    ) -> ReferenceHandle:
        """
        Register a handle and optionally bind a token to it.

        Args:
            entry_id: Id of the memory entry the handle views
            content: Snapshot of the value
            token: Optional name; replaces any earlier binding
            output_file: Where the value was materialized, if anywhere
            created_at: Creation time (defaults to now)

        Returns:
            The new ReferenceHandle
        """
        if token is not None:
            validate_token(token)

        handle = ReferenceHandle(
            ref_id=entry_id,
            content=content,
            token=token,
            output_file=output_file,
            created_at=created_at or datetime.now(),
        )
        self._deferred.pop(entry_id, None)
        self._references[entry_id] = handle
        self._bind(token, entry_id)
        return handle

    def create_deferred_reference(
        self,
        entry_id: str,
        load: Callable[[], Content],
        token: str | None = None,
        output_file: Path | None = None,
        created_at: datetime | None = None,
    ) -> None:
        """
        Register a reference whose content is read on first resolve.

        ``load`` is called at most once; whatever it raises propagates from
        the resolve that triggered it.
        """
        if token is not None:
            validate_token(token)
        snapshot = _Snapshot(token, output_file, created_at or datetime.now())
        self._references.pop(entry_id, None)
        self._deferred[entry_id] = (load, snapshot)
        self._bind(token, entry_id)

    def _bind(self, token: str | None, entry_id: str) -> None:
        if token is None:
            return
        previous = self._tokens.get(token)
        if previous is not None and previous != entry_id:
            logger.warning(
                "Token '%s' already bound to %s; rebinding to %s",
                token,
                previous,
                entry_id,
            )
        self._tokens[token] = entry_id

    def _get(self, ref_id: str) -> ReferenceHandle:
        if ref_id in self._deferred:
            load, snapshot = self._deferred[ref_id]
            self._references[ref_id] = ReferenceHandle(
                ref_id=ref_id,
                content=load(),
                token=snapshot.token,
                output_file=snapshot.output_file,
                created_at=snapshot.created_at,
            )
            del self._deferred[ref_id]
        return self._references[ref_id]

    def resolve(self, token_or_id: str) -> ReferenceHandle:
        """
        Look up a handle by token, then by id.

        Raises:
            ReferenceNotFound: If neither matches
            ReadError: If a deferred reference cannot be read
        """
        ref_id = self._tokens.get(token_or_id)
        if ref_id is not None:
            return self._get(ref_id)
        if token_or_id in self._references or token_or_id in self._deferred:
            return self._get(token_or_id)
        raise ReferenceNotFound(token_or_id)

    def resolve_all(
        self, tokens: Iterable[str | ReferenceHandle]
    ) -> list[ReferenceHandle]:
        """
        Resolve every token in order; already-resolved handles pass through.

        Fails on the first unresolved token without returning a partial list.

        Raises:
            ReferenceNotFound: Naming the first token that did not resolve
        """
        resolved = []
        for item in tokens:
            if isinstance(item, ReferenceHandle):
                resolved.append(item)
            else:
                resolved.append(self.resolve(item))
        return resolved

    def is_bound(self, token: str) -> bool:
        return token in self._tokens

    def tokens(self) -> list[str]:
        return list(self._tokens)

    def list_references(self) -> list[ReferenceHandle]:
        for ref_id in list(self._deferred):
            self._get(ref_id)
        return list(self._references.values())

    def clear(self) -> None:
        self._references.clear()
        self._deferred.clear()
        self._tokens.clear()

    def __len__(self) -> int:
        return len(self._references) + len(self._deferred)
