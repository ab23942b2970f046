"""
Perfect-matching feasibility for a group's compatibility graph.

Santas sit on the left, recipients on the right, with an edge p -> q
whenever q is in allowed(p). Since allowed(p) never contains p, any
perfect matching is already a derangement, so the group is feasible
exactly when the maximum matching covers every santa. When it does not,
Hall's theorem guarantees a set of santas whose combined allowed
recipients are fewer than the santas themselves; we report a minimal one.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from dataclasses import dataclass

from .constraints import ConstraintModel
from .errors import InfeasibleConstraintsError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HallObstruction:
    santas: frozenset
    neighborhood: frozenset

    @property
    def deficiency(self) -> int:
        return len(self.santas) - len(self.neighborhood)

    def describe(self) -> str:
        if len(self.santas) == 1:
            (who,) = self.santas
            if not self.neighborhood:
                return f"Participant {who!r} is excluded from gifting to everyone else in the group."
        names = ", ".join(repr(s) for s in sorted(self.santas))
        return (
            f"{len(self.santas)} participants ({names}) share exclusions that leave only "
            f"{len(self.neighborhood)} possible recipient(s) between them, "
            "so no valid assignment exists."
        )


@dataclass(frozen=True)
class FeasibilityReport:
    feasible: bool
    matching: dict | None = None
    obstruction: HallObstruction | None = None


def _augment(root, adjacency: dict, owner: dict) -> bool:
    """
    Search an alternating path from `root` to a free recipient; flip it if found.

    Each santa reached is first checked for a free recipient of its own
    before the search goes deeper through the recipients it could take over.
    """
    visited = set()
    stack: list = []
    path: list = []
    santa = root

    while True:
        free = next((r for r in adjacency[santa] if r not in owner), None)
        if free is not None:
            # chain[i] takes (path + [free])[i]; path[i] used to belong to chain[i + 1]
            chain = [s for s, _ in stack] + [santa]
            for s, rec in zip(chain, path + [free]):
                owner[rec] = s
            return True

        stack.append((santa, iter(adjacency[santa])))
        while stack:
            _, candidates = stack[-1]
            taken = next((r for r in candidates if r not in visited), None)
            if taken is not None:
                visited.add(taken)
                path.append(taken)
                santa = owner[taken]
                break
            stack.pop()
            if path:
                path.pop()
        else:
            return False


def maximum_matching(
    model: ConstraintModel,
    santa_order: Iterable | None = None,
    rng: random.Random | None = None,
) -> dict:
    """
    Augmenting-path maximum bipartite matching, returned as {santa: recipient}.

    Only santas in `santa_order` (default: everyone) are matched. Without
    `rng` the result is fully deterministic; with it, candidate order is
    shuffled so different seeds reach different matchings.
    """
    order = list(model.participants if santa_order is None else santa_order)

    adjacency = {}
    for s in order:
        candidates = sorted(model.allowed[s])
        if rng is not None:
            rng.shuffle(candidates)
        adjacency[s] = candidates

    owner: dict = {}
    for s in order:
        _augment(s, adjacency, owner)

    return {s: r for r, s in owner.items()}


def _alternating_reach(model: ConstraintModel, matching: dict, root) -> set:
    owner = {r: s for s, r in matching.items()}
    seen = {root}
    queue = [root]
    while queue:
        s = queue.pop()
        for r in model.allowed[s]:
            holder = owner.get(r)
            if holder is not None and holder not in seen:
                seen.add(holder)
                queue.append(holder)
    return seen


def _minimal_obstruction(model: ConstraintModel, matching: dict) -> HallObstruction:
    unmatched = [s for s in model.participants if s not in matching]
    # With a maximum matching every recipient reachable from an unmatched
    # santa is taken, so the reach has exactly one santa too many. Any
    # violating subset must hold the root and be closed under the same
    # alternating steps, so no proper subset violates.
    core = _alternating_reach(model, matching, unmatched[0])

    return HallObstruction(santas=frozenset(core), neighborhood=model.neighborhood(core))


def check_feasibility(model: ConstraintModel) -> FeasibilityReport:
    matching = maximum_matching(model)
    if len(matching) == len(model):
        return FeasibilityReport(feasible=True, matching=matching)

    obstruction = _minimal_obstruction(model, matching)
    logger.info(
        "Infeasible group: matched %d of %d santas; obstruction of %d santas over %d recipients",
        len(matching), len(model), len(obstruction.santas), len(obstruction.neighborhood),
    )
    return FeasibilityReport(feasible=False, obstruction=obstruction)


def ensure_feasible(model: ConstraintModel) -> dict:
    """Return a perfect matching or raise InfeasibleConstraintsError."""
    report = check_feasibility(model)
    if not report.feasible:
        raise InfeasibleConstraintsError(report.obstruction)
    return report.matching
