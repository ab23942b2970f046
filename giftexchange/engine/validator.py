from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from .constraints import ConstraintModel
from .errors import InvariantViolationError


logger = logging.getLogger(__name__)


def find_violations(model: ConstraintModel, pairs: Iterable[tuple]) -> list[str]:
    """
    Every invariant the edge set breaks, as readable strings.

    Independent of how the edges were produced: only the model's roster and
    exclusions are trusted.
    """
    edges = list(pairs)
    members = set(model.participants)
    problems = []

    if len(edges) != len(members):
        problems.append(f"expected {len(members)} edges, got {len(edges)}")

    out_deg = Counter(s for s, _ in edges)
    in_deg = Counter(r for _, r in edges)

    for s, r in edges:
        if s not in members or r not in members:
            problems.append(f"edge {s!r}->{r!r} involves a non-eligible participant")
        if s == r:
            problems.append(f"{s!r} is assigned to themselves")
        elif model.is_excluded(s, r):
            problems.append(f"edge {s!r}->{r!r} matches an exclusion")

    for p in model.participants:
        if out_deg[p] != 1:
            problems.append(f"{p!r} is santa {out_deg[p]} times")
        if in_deg[p] != 1:
            problems.append(f"{p!r} is recipient {in_deg[p]} times")

    if problems:
        return problems

    # degrees are all 1 here, so the successor map is a permutation of the roster
    successor = dict(edges)
    seen = set()
    for start in model.participants:
        if start in seen:
            continue
        length = 0
        node = start
        while node not in seen:
            seen.add(node)
            node = successor[node]
            length += 1
        if node != start or length < 2:
            problems.append(f"cycle through {start!r} is malformed (length {length})")

    return problems


def validate_assignment(model: ConstraintModel, pairs: Iterable[tuple]) -> None:
    problems = find_violations(model, pairs)
    if problems:
        logger.error("Generated assignment violates invariants: %s", problems)
        raise InvariantViolationError(problems)
