from __future__ import annotations

from giftexchange.services.assignments import get_group_assignments
from giftexchange.services.exclusions import add_exclusion


def test_generate_and_show(app, family) -> None:
    group, _ = family
    runner = app.test_cli_runner()

    result = runner.invoke(args=["assignments", "generate", str(group.id), "--seed", "42"])
    assert result.exit_code == 0, result.output
    assert "Assigned 5 santas" in result.output
    assert "seed=42" in result.output

    shown = runner.invoke(args=["assignments", "show", str(group.id)])
    assert shown.exit_code == 0
    assert len(shown.output.strip().splitlines()) == 5


def test_generate_reports_infeasible_group(app, family) -> None:
    group, m = family
    for other in ("Ben", "Cat", "Dan", "Eve"):
        add_exclusion(group.id, m["Ann"].id, m[other].id)

    result = app.test_cli_runner().invoke(args=["assignments", "generate", str(group.id)])

    assert result.exit_code != 0
    assert "Failed to run assignments" in result.output
    assert get_group_assignments(group.id) == []


def test_check_and_clear(app, family) -> None:
    group, _ = family
    runner = app.test_cli_runner()

    assert "can be drawn" in runner.invoke(args=["assignments", "check", str(group.id)]).output

    runner.invoke(args=["assignments", "generate", str(group.id), "--seed", "1"])
    cleared = runner.invoke(args=["assignments", "clear", str(group.id)])
    assert "Cleared 5 assignments" in cleared.output
    assert "not been run yet" in runner.invoke(args=["assignments", "show", str(group.id)]).output


def test_unknown_group_is_an_error(app) -> None:
    result = app.test_cli_runner().invoke(args=["assignments", "generate", "999"])

    assert result.exit_code != 0
    assert "No group with id 999" in result.output
