"""
Randomized derangement search with a matching fallback.

Phase one walks santas in a shuffled order and hands each a random unused
allowed recipient, backtracking on dead ends. Every backtrack costs one
unit of the retry budget. Once the budget is gone we take a perfect
matching from the feasibility matcher and randomize it with pairwise
swaps that stay inside the allowed graph.
"""

from __future__ import annotations

import logging
import random
import secrets
import time
from dataclasses import dataclass
from datetime import timedelta

from .constraints import ConstraintModel
from .errors import RetryBudgetExhaustedError
from .feasibility import maximum_matching


logger = logging.getLogger(__name__)

UINT64_MAX = 2**64 - 1
UINT32_MAX = 2**32 - 1

MIN_RETRY_BUDGET = 64
RETRY_BUDGET_FACTOR = 4

STRATEGY_RANDOMIZED = "randomized"
STRATEGY_MATCHING = "matching"


@dataclass(frozen=True)
class GenerationOptions:
    seed: int | None = None
    retry_budget: int | None = None
    deadline: timedelta | float | None = None

    def __post_init__(self):
        if self.seed is not None and not 0 <= self.seed <= UINT64_MAX:
            raise ValueError("seed must fit in an unsigned 64-bit integer")
        if self.retry_budget is not None and not 0 <= self.retry_budget <= UINT32_MAX:
            raise ValueError("retry_budget must fit in an unsigned 32-bit integer")
        if self.deadline is not None and self.deadline_seconds < 0:
            raise ValueError("deadline must not be negative")

    @property
    def deadline_seconds(self) -> float | None:
        if self.deadline is None:
            return None
        if isinstance(self.deadline, timedelta):
            return self.deadline.total_seconds()
        return float(self.deadline)

    def budget_for(self, n: int) -> int:
        if self.retry_budget is not None:
            return self.retry_budget
        return max(MIN_RETRY_BUDGET, RETRY_BUDGET_FACTOR * n * n)


class _Clock:
    def __init__(self, seconds: float | None):
        self.expires = None if seconds is None else time.monotonic() + seconds

    def check(self, phase: str) -> None:
        if self.expires is not None and time.monotonic() >= self.expires:
            raise RetryBudgetExhaustedError(f"Deadline reached during {phase}.")


def randomized_search(model: ConstraintModel, rng: random.Random, budget: int, clock: _Clock) -> dict | None:
    """Backtracking search; returns {santa: recipient} or None when the budget runs out."""
    order = list(model.participants)
    rng.shuffle(order)

    senders = {r: model.allowed_senders(r) for r in model.participants}
    # allowed recipients still unused, per santa not yet placed
    remaining = {s: len(model.allowed[s]) for s in order}
    used: set = set()
    placed: set = set()
    chosen: list = []
    frames: list = []
    backtracks = 0

    def take(santa, recipient) -> bool:
        used.add(recipient)
        placed.add(santa)
        chosen.append(recipient)
        ok = True
        for q in senders[recipient]:
            if q in placed:
                continue
            remaining[q] -= 1
            if remaining[q] == 0:
                ok = False
        return ok

    def release(santa) -> None:
        recipient = chosen.pop()
        used.discard(recipient)
        for q in senders[recipient]:
            if q not in placed:
                remaining[q] += 1
        placed.discard(santa)

    def open_frame(santa) -> None:
        candidates = sorted(model.allowed[santa] - used)
        rng.shuffle(candidates)
        frames.append(candidates)

    open_frame(order[0])
    while frames:
        clock.check("randomized search")
        depth = len(frames) - 1
        santa = order[depth]
        candidates = frames[-1]

        if not candidates:
            frames.pop()
            if not frames:
                return None
            release(order[depth - 1])
            backtracks += 1
            if backtracks > budget:
                logger.debug("Randomized search gave up after %d backtracks", backtracks - 1)
                return None
            continue

        recipient = candidates.pop()
        if not take(santa, recipient):
            release(santa)
            continue

        if len(chosen) == len(order):
            logger.debug("Randomized search finished with %d backtracks", backtracks)
            return dict(zip(order, chosen))
        open_frame(order[depth + 1])

    return None


def matching_fallback(model: ConstraintModel, rng: random.Random, clock: _Clock | None = None) -> dict:
    """
    Perfect matching from the deterministic matcher, shuffled by allowed swaps.

    Swapping the recipients of a and b keeps every degree at one and adds no
    self edge, so each swap only needs both new edges to be allowed.
    """
    clock = clock or _Clock(None)
    matching = maximum_matching(model)
    if len(matching) != len(model):
        logger.critical(
            "Matching fallback covered %d of %d santas for a group that passed feasibility",
            len(matching), len(model),
        )
        raise RetryBudgetExhaustedError("Matching fallback could not produce a complete assignment.")

    santas = list(model.participants)
    swaps = 0
    for _ in range(len(santas) * len(santas)):
        clock.check("matching fallback")
        a, b = rng.sample(santas, 2)
        x, y = matching[a], matching[b]
        if y in model.allowed[a] and x in model.allowed[b]:
            matching[a], matching[b] = y, x
            swaps += 1

    if not swaps:
        logger.debug("No allowed swaps; keeping the deterministic matching")
    return matching


def generate(model: ConstraintModel, options: GenerationOptions | None = None) -> tuple[dict, int, str]:
    """Return (mapping, seed used, strategy) for a model already known to be feasible."""
    options = options or GenerationOptions()
    seed = options.seed if options.seed is not None else secrets.randbits(64)
    rng = random.Random(seed)
    clock = _Clock(options.deadline_seconds)
    budget = options.budget_for(len(model))

    mapping = randomized_search(model, rng, budget, clock)
    if mapping is not None:
        return mapping, seed, STRATEGY_RANDOMIZED

    logger.warning(
        "Retry budget of %d backtracks exhausted for %d participants; using matching fallback",
        budget, len(model),
    )
    return matching_fallback(model, rng, clock), seed, STRATEGY_MATCHING
