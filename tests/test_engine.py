from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from giftexchange.engine import (
    AssignmentEngine,
    AssignmentSet,
    DegenerateGroupError,
    GenerationOptions,
    InfeasibleConstraintsError,
    InvariantViolationError,
    generate_assignments,
)


class RecordingPersister:
    def __init__(self):
        self.calls = []

    def replace_assignments(self, group_id, assignment_set):
        self.calls.append((group_id, assignment_set))


def test_single_participant_is_degenerate() -> None:
    persister = RecordingPersister()

    with pytest.raises(DegenerateGroupError):
        generate_assignments(1, ["only"], [], persister=persister)
    assert persister.calls == []


def test_mutually_excluded_pair_is_infeasible() -> None:
    persister = RecordingPersister()

    with pytest.raises(InfeasibleConstraintsError) as excinfo:
        generate_assignments(1, ["A", "B"], [("B", "A")], persister=persister)

    assert excinfo.value.obstruction.neighborhood == frozenset()
    assert persister.calls == []


def test_successful_run_persists_once() -> None:
    persister = RecordingPersister()
    result = generate_assignments(7, list("ABCDE"), [("A", "B")], GenerationOptions(seed=3), persister=persister)

    assert persister.calls == [(7, result)]
    assert result.group_id == 7
    assert len(result) == 5


def test_notifier_called_for_every_assignment() -> None:
    notifier = Mock()
    with ThreadPoolExecutor(max_workers=2) as executor:
        result = AssignmentEngine(notifier=notifier, executor=executor).generate(
            9, [1, 2, 3, 4], [], GenerationOptions(seed=8)
        )

    notified = {(c.args[1], c.args[2]) for c in notifier.call_args_list}
    assert notified == set(result.pairs)
    assert all(c.args[0] == 9 for c in notifier.call_args_list)


def test_failing_notifier_does_not_fail_the_run(caplog) -> None:
    notifier = Mock(side_effect=RuntimeError("smtp down"))
    persister = RecordingPersister()

    with caplog.at_level(logging.ERROR, logger="giftexchange"):
        with ThreadPoolExecutor(max_workers=1) as executor:
            result = generate_assignments(
                2, [1, 2, 3], [], GenerationOptions(seed=1),
                persister=persister, notifier=notifier, executor=executor,
            )

    assert len(persister.calls) == 1
    assert notifier.call_count == len(result) == 3
    assert "Failed to notify santa" in caplog.text


def test_slow_notifier_does_not_hold_up_generate() -> None:
    release = threading.Event()
    delivered = []

    def notifier(group_id, santa, recipient):
        release.wait(timeout=10)
        delivered.append(santa)

    result = generate_assignments(5, [1, 2, 3], [], GenerationOptions(seed=2), notifier=notifier)

    # the run has returned while the first notification is still blocked
    assert len(result) == 3
    assert delivered == []

    release.set()
    deadline = time.monotonic() + 10
    while len(delivered) < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert sorted(delivered) == [1, 2, 3]


def test_persister_error_propagates() -> None:
    persister = Mock()
    persister.replace_assignments.side_effect = OSError("disk full")
    notifier = Mock()

    with pytest.raises(OSError):
        generate_assignments(3, [1, 2, 3], [], persister=persister, notifier=notifier)
    notifier.assert_not_called()


def test_invalid_generator_output_is_never_persisted(monkeypatch) -> None:
    persister = RecordingPersister()
    monkeypatch.setattr(
        "giftexchange.engine.pipeline.generate",
        lambda model, options: ({1: 2, 2: 1, 3: 3}, 0, "randomized"),
    )

    with pytest.raises(InvariantViolationError):
        generate_assignments(4, [1, 2, 3], [], persister=persister)
    assert persister.calls == []


def test_cycles_and_lookup_helpers() -> None:
    result = AssignmentSet(
        group_id=1,
        pairs=frozenset({(1, 2), (2, 1), (3, 5), (5, 4), (4, 3)}),
        seed=0,
        strategy="randomized",
    )

    assert result.cycles() == [(1, 2), (3, 5, 4)]
    assert result.cycle_type() == (3, 2)
    assert result.recipient_of(5) == 4
    assert (3, 5) in result
    assert list(result)[0] == (1, 2)
