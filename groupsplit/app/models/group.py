"""
models/group.py — The whole client-local group state.

One group at a time, mirroring the snapshot document:
    {name, participants: [Participant], expenses: [Expense | Payment]}

Services mutate a GroupState in memory; the route then hands it to
snapshot_service.save_state() explicitly. Nothing here touches storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from groupsplit.app.models.participant import Participant
from groupsplit.app.models.transaction import AnyTransaction


@dataclass
class GroupState:
    name: str
    participants: list[Participant] = field(default_factory=list)
    transactions: list[AnyTransaction] = field(default_factory=list)

    @property
    def participant_names(self) -> list[str]:
        """Roster order. The balance engine orders its output by this."""
        return [p.name for p in self.participants]

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<GroupState name={self.name!r} "
            f"participants={len(self.participants)} "
            f"transactions={len(self.transactions)}>"
        )
