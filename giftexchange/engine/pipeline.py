from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Executor
from typing import Protocol

from .constraints import ConstraintModel
from .feasibility import ensure_feasible
from .generator import GenerationOptions, generate
from .results import AssignmentSet
from .validator import validate_assignment


logger = logging.getLogger(__name__)

Notifier = Callable[[object, object, object], None]


class AssignmentPersister(Protocol):
    def replace_assignments(self, group_id, assignment_set: AssignmentSet) -> None:
        """Atomically drop the group's previous assignments (and threads) and store these."""


class AssignmentEngine:
    """
    Runs model -> feasibility -> generation -> validation -> persistence.

    The caller must hold the group's lock (or transaction) for the whole
    call; the engine itself keeps no state between runs.

    Notifications are dispatched once the set is persisted and never hold
    up the run: one task per assignment on `executor` when given, otherwise
    a single daemon thread.
    """

    def __init__(
        self,
        persister: AssignmentPersister | None = None,
        notifier: Notifier | None = None,
        executor: Executor | None = None,
    ):
        self.persister = persister
        self.notifier = notifier
        self.executor = executor

    def generate(
        self,
        group_id,
        participants: Iterable,
        exclusions: Iterable,
        options: GenerationOptions | None = None,
    ) -> AssignmentSet:
        model = ConstraintModel.build(participants, exclusions)
        ensure_feasible(model)

        mapping, seed, strategy = generate(model, options)
        validate_assignment(model, mapping.items())

        result = AssignmentSet(
            group_id=group_id,
            pairs=frozenset(mapping.items()),
            seed=seed,
            strategy=strategy,
        )

        if self.persister is not None:
            self.persister.replace_assignments(group_id, result)

        logger.info(
            "Generated %d assignments for group %s (strategy=%s, seed=%d)",
            len(result), group_id, strategy, seed,
        )

        if self.notifier is not None:
            self._notify(result)
        return result

    def _notify(self, result: AssignmentSet) -> None:
        if self.executor is not None:
            for santa, recipient in result:
                self.executor.submit(self._send, result.group_id, santa, recipient)
            return

        worker = threading.Thread(
            target=self._send_all, args=(result,), daemon=True, name=f"notify-{result.group_id}"
        )
        worker.start()

    def _send_all(self, result: AssignmentSet) -> None:
        for santa, recipient in result:
            self._send(result.group_id, santa, recipient)

    def _send(self, group_id, santa, recipient) -> None:
        try:
            self.notifier(group_id, santa, recipient)
        except Exception:
            logger.exception("Failed to notify santa %r in group %s", santa, group_id)


def generate_assignments(
    group_id,
    participants: Iterable,
    exclusions: Iterable,
    options: GenerationOptions | None = None,
    persister: AssignmentPersister | None = None,
    notifier: Notifier | None = None,
    executor: Executor | None = None,
) -> AssignmentSet:
    return AssignmentEngine(persister, notifier, executor).generate(group_id, participants, exclusions, options)
