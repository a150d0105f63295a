"""
services/group_service.py — Group, participant and history logic.

Rules:
  - A group name is trimmed; the schema has already rejected blanks.
  - Participant names are unique case-insensitively. Duplicates are not an
    error: they are skipped and reported back as a warning.
  - Participants are never removed; expenses reference them by name.

Layer rules:
  - No Flask imports. Operates on a GroupState in memory.
  - Persisting the result is the route's responsibility
    (snapshot_service.save_state).
"""

from __future__ import annotations

from groupsplit.app.errors import AppError, ErrorCode, WarningCode
from groupsplit.app.models.group import GroupState
from groupsplit.app.models.participant import Participant
from groupsplit.app.models.transaction import Payment, Transaction


# ── Group lifecycle ────────────────────────────────────────────────────────

def create_group(name: str) -> GroupState:
    """Starts a fresh, empty group. Any previous group is replaced by the caller saving this one."""
    return GroupState(name=name.strip())


def summarize_group(state: GroupState) -> dict:
    """Plain-dict view of the group header and roster."""
    return {
        "name": state.name,
        "participants": [{"id": p.id, "name": p.name} for p in state.participants],
        "transaction_count": len(state.transactions),
    }


# ── Participants ───────────────────────────────────────────────────────────

def add_participants(
        state: GroupState,
        names: list[str],
) -> tuple[list[Participant], list[str]]:
    """
    Adds new participants in the order given.

    Each name is trimmed; blank entries are dropped. A name already in the
    group, or repeated earlier in the same batch, compares case-insensitively
    and is returned in `duplicates` instead of being added.

    Returns:
        (added, duplicates)
    """
    existing = {p.name.lower() for p in state.participants}
    added: list[Participant] = []
    duplicates: list[str] = []

    for raw in names:
        name = raw.strip()
        if not name:
            continue
        if name.lower() in existing:
            duplicates.append(name)
            continue
        participant = Participant(name=name)
        added.append(participant)
        existing.add(name.lower())

    state.participants.extend(added)
    return added, duplicates


def duplicate_warnings(duplicates: list[str]) -> list[dict]:
    """Builds the DUPLICATE_PARTICIPANT warning for a batch, if any."""
    if not duplicates:
        return []
    return [{
        "code": WarningCode.DUPLICATE_PARTICIPANT,
        "message": f"Already in group: {', '.join(duplicates)}",
    }]


def get_participant(state: GroupState, name: str) -> Participant:
    """Returns the participant with exactly this name or raises PARTICIPANT_NOT_FOUND (404)."""
    for participant in state.participants:
        if participant.name == name:
            return participant
    raise AppError(
        ErrorCode.PARTICIPANT_NOT_FOUND,
        f"{name!r} is not a participant of this group.",
        404,
    )


# ── History views ──────────────────────────────────────────────────────────

def list_transactions(
        state: GroupState,
        member: str | None = None,
        kind: str = "all",
        order: str = "desc",
) -> list[Transaction]:
    """
    History view with the same filters as the expense list.

    Args:
        member: keep only transactions this person paid or is split into.
        kind:   "all", "expenses" or "payments".
        order:  "desc" (newest first) or "asc", by date. Ties keep
                insertion order.
    """
    transactions: list[Transaction] = list(state.transactions)

    if member:
        transactions = [t for t in transactions if member in t.participants_involved]

    if kind == "expenses":
        transactions = [t for t in transactions if not isinstance(t, Payment)]
    elif kind == "payments":
        transactions = [t for t in transactions if isinstance(t, Payment)]

    return sorted(transactions, key=lambda t: t.date, reverse=(order == "desc"))


def search_between(state: GroupState, p1: str, p2: str) -> list[Transaction]:
    """
    Transactions involving both people, newest first.
    Returns [] when either name is blank or both are the same person.
    """
    if not p1 or not p2 or p1 == p2:
        return []

    matches = [
        t for t in state.transactions
        if p1 in t.participants_involved and p2 in t.participants_involved
    ]
    return sorted(matches, key=lambda t: t.date, reverse=True)
