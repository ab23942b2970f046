from __future__ import annotations

import enum
import logging
from collections import defaultdict
from collections.abc import Hashable, Iterable
from dataclasses import dataclass

from .errors import DegenerateGroupError


logger = logging.getLogger(__name__)


class ParticipantStatus(str, enum.Enum):
    INVITED = "invited"
    JOINED = "joined"
    CONFIRMED = "confirmed"
    WITHDRAWN = "withdrawn"

    @property
    def is_eligible(self) -> bool:
        return self in (ParticipantStatus.JOINED, ParticipantStatus.CONFIRMED)


def eligible_ids(roster: Iterable) -> list:
    """Ids of roster entries (anything with .id and .status) that can be drawn."""
    return [p.id for p in roster if ParticipantStatus(p.status).is_eligible]


@dataclass(frozen=True)
class ConstraintModel:
    """
    Compatibility graph for one group.

    allowed[p] holds every participant p may gift to: everyone except p
    and the people p shares an exclusion with.
    """

    participants: tuple
    allowed: dict
    exclusions: frozenset

    @classmethod
    def build(cls, participants: Iterable[Hashable], exclusions: Iterable) -> "ConstraintModel":
        ids = list(participants)
        if len(set(ids)) != len(ids):
            raise ValueError("Participant ids must be unique.")
        if len(ids) < 2:
            raise DegenerateGroupError(
                f"Need at least 2 eligible participants to run assignments (got {len(ids)})."
            )

        ordered = tuple(sorted(ids))
        members = set(ordered)

        pairs = set()
        for a, b in exclusions:
            if a == b:
                logger.debug("Ignoring self exclusion for %r", a)
                continue
            if a not in members or b not in members:
                logger.debug("Ignoring exclusion %r/%r outside the eligible roster", a, b)
                continue
            pairs.add(frozenset((a, b)))

        blocked_by = defaultdict(set)
        for pair in pairs:
            a, b = pair
            blocked_by[a].add(b)
            blocked_by[b].add(a)

        allowed = {p: frozenset(members - blocked_by[p] - {p}) for p in ordered}

        return cls(participants=ordered, allowed=allowed, exclusions=frozenset(pairs))

    def __len__(self) -> int:
        return len(self.participants)

    def is_excluded(self, a, b) -> bool:
        return frozenset((a, b)) in self.exclusions

    def allowed_senders(self, recipient) -> list:
        # exclusions are symmetric, so this mirrors allowed[recipient]
        return [p for p in self.participants if recipient in self.allowed[p]]

    def neighborhood(self, santas: Iterable) -> frozenset:
        out: set = set()
        for s in santas:
            out |= self.allowed[s]
        return frozenset(out)
