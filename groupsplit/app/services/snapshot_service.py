"""
services/snapshot_service.py — Persistence of the group snapshot.

The host keeps exactly one group in the local store, under the configured
SNAPSHOT_KEY. Every request that changes the group ends with an explicit
save_state() call from the route; nothing here saves implicitly.

Load policy:
  - load_state(): a stored payload that no longer parses is logged and
    treated as "no group yet". The user starts over rather than being
    locked out by a corrupt row.
  - import_state(): a user-supplied file that does not parse is rejected
    with INVALID_SNAPSHOT (400). Nothing is stored in that case.

Layer rules:
  - No Flask imports. Receives a SQLAlchemy session as an argument.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging

from marshmallow import ValidationError
from sqlalchemy.orm import Session

from groupsplit.app.errors import AppError, ErrorCode
from groupsplit.app.models.group import GroupState
from groupsplit.app.models.snapshot import GroupSnapshot
from groupsplit.app.schemas.snapshot_schema import GroupSnapshotSchema

logger = logging.getLogger(__name__)


def _first_error(messages) -> str:
    """Flattens marshmallow's nested messages to one readable line."""
    if isinstance(messages, dict):
        for key, value in messages.items():
            return f"{key}: {_first_error(value)}"
    if isinstance(messages, list) and messages:
        return _first_error(messages[0])
    return str(messages)


# ── Document conversion ────────────────────────────────────────────────────

def export_state(state: GroupState) -> dict:
    """Returns the JSON-compatible snapshot document for a group."""
    return GroupSnapshotSchema().dump(state)


def import_state(payload) -> GroupState:
    """
    Parses a snapshot document supplied by the user.

    Raises:
        AppError(INVALID_SNAPSHOT, 400) -- not an object, or name /
                                           participants / expenses missing
                                           or of the wrong type.
    """
    if not isinstance(payload, dict):
        raise AppError(
            ErrorCode.INVALID_SNAPSHOT,
            "Invalid data file format: expected a JSON object.",
            400,
        )
    try:
        return GroupSnapshotSchema().load(payload)
    except ValidationError as exc:
        raise AppError(
            ErrorCode.INVALID_SNAPSHOT,
            f"Invalid data file format: {_first_error(exc.messages)}",
            400,
        ) from exc


# ── Store access ───────────────────────────────────────────────────────────

def load_state(session: Session, key: str) -> GroupState | None:
    """Returns the stored group, or None when there is none (or it is unreadable)."""
    row = session.get(GroupSnapshot, key)
    if row is None:
        return None

    try:
        return GroupSnapshotSchema().load(row.payload)
    except ValidationError as exc:
        logger.warning(
            "Could not load group snapshot %r from the local store: %s",
            key,
            exc.messages,
        )
        return None


def require_state(session: Session, key: str) -> GroupState:
    """
    Returns the stored group or raises GROUP_NOT_FOUND (404).
    Every route except "create group" and "import" starts here.
    """
    state = load_state(session, key)
    if state is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            "No group exists yet. Create one or import a data file.",
            404,
        )
    return state


def save_state(state: GroupState, session: Session, key: str) -> None:
    """Upserts the snapshot row for `key`. The caller commits."""
    payload = export_state(state)
    row = session.get(GroupSnapshot, key)
    if row is None:
        session.add(GroupSnapshot(key=key, payload=payload))
    else:
        row.payload = payload
    session.flush()
    logger.debug(
        "Saved group %r: %d participants, %d transactions",
        state.name,
        len(state.participants),
        len(state.transactions),
    )


def clear_state(session: Session, key: str) -> None:
    """Removes the stored group. Idempotent."""
    row = session.get(GroupSnapshot, key)
    if row is not None:
        session.delete(row)
        session.flush()
