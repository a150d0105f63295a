"""
models/participant.py — Group participant.

Names are the keys used everywhere else (payer, split entries, debts).
Case-insensitive uniqueness is enforced when participants are added
(group_service.add_participants); this model does not deduplicate.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Participant:
    name: str
    id: str = field(default_factory=_new_id)
