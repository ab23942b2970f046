from __future__ import annotations

import click
from flask.cli import AppGroup

from .engine import AssignmentError
from .services.assignments import (
    check_group_feasibility,
    clear_assignments,
    default_options,
    get_group_assignments,
    run_group_assignments,
)

assignments_cli = AppGroup("assignments", help="Draw, inspect and clear gift assignments.")


@assignments_cli.command("generate")
@click.argument("group_id", type=int)
@click.option("--seed", type=click.IntRange(0, 2**64 - 1), default=None, help="Replay a previous draw.")
@click.option("--retry-budget", type=click.IntRange(0, 2**32 - 1), default=None)
@click.option("--deadline", type=click.FloatRange(min=0), default=None, help="Seconds before giving up.")
def generate_command(group_id: int, seed, retry_budget, deadline):
    """Run (or re-run) the draw for GROUP_ID, replacing earlier assignments."""
    options = default_options(seed=seed, retry_budget=retry_budget, deadline=deadline)
    try:
        result = run_group_assignments(group_id, options)
    except AssignmentError as e:
        raise click.ClickException(f"Failed to run assignments: {e}") from e

    click.echo(
        f"Assigned {len(result)} santas in group {group_id} "
        f"({len(result.cycles())} cycle(s), strategy={result.strategy}, seed={result.seed})."
    )


@assignments_cli.command("check")
@click.argument("group_id", type=int)
def check_command(group_id: int):
    """Report whether GROUP_ID can be drawn with its current exclusions."""
    try:
        report = check_group_feasibility(group_id)
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e

    if not report.feasible:
        raise click.ClickException(report.obstruction.describe())
    click.echo(f"Group {group_id} can be drawn.")


@assignments_cli.command("show")
@click.argument("group_id", type=int)
def show_command(group_id: int):
    rows = get_group_assignments(group_id)
    if not rows:
        click.echo("Assignments have not been run yet.")
        return
    for a in rows:
        click.echo(f"{a.santa.name} -> {a.recipient.name}")


@assignments_cli.command("clear")
@click.argument("group_id", type=int)
def clear_command(group_id: int):
    """Delete GROUP_ID's assignments and their message threads."""
    try:
        removed = clear_assignments(group_id)
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Cleared {removed} assignments.")
