from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..engine import (
    AssignmentEngine,
    AssignmentError,
    AssignmentSet,
    ConstraintModel,
    FeasibilityReport,
    GenerationOptions,
    check_feasibility,
    eligible_ids,
)
from ..extensions import db
from ..models import Assignment, Group, Message, MessageThread, Participant
from .exclusions import group_exclusion_pairs


logger = logging.getLogger(__name__)


class GroupNotFoundError(AssignmentError):
    pass


def _get_group(group_id, for_update: bool = False) -> Group:
    group = db.session.get(Group, group_id, with_for_update=for_update)
    if group is None:
        raise GroupNotFoundError(f"No group with id {group_id}.")
    return group


def _eligible_participant_ids(group_id) -> list[int]:
    return eligible_ids(Participant.query.filter_by(group_id=group_id).all())


def _delete_group_assignments(group_id) -> int:
    """Delete messages, threads and assignments of a group. Caller commits."""
    thread_ids = select(MessageThread.id).where(MessageThread.group_id == group_id)
    Message.query.filter(Message.thread_id.in_(thread_ids)).delete(synchronize_session="fetch")
    MessageThread.query.filter_by(group_id=group_id).delete(synchronize_session="fetch")
    return Assignment.query.filter_by(group_id=group_id).delete(synchronize_session="fetch")


class SqlAlchemyAssignmentPersister:
    """Replaces a group's assignments in the current session's transaction, then commits."""

    def replace_assignments(self, group_id, assignment_set: AssignmentSet) -> None:
        try:
            group = _get_group(group_id)
            removed = _delete_group_assignments(group_id)
            for santa_id, recipient_id in assignment_set:
                db.session.add(Assignment(group_id=group_id, santa_id=santa_id, recipient_id=recipient_id))
            group.assignments_run_at = datetime.now(timezone.utc)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        logger.debug("Group %s: replaced %d assignments with %d", group_id, removed, len(assignment_set))


def default_options(seed: int | None = None, retry_budget: int | None = None, deadline=None) -> GenerationOptions:
    """GenerationOptions with the app's configured budget and deadline filled in."""
    cfg = current_app.config
    if retry_budget is None:
        retry_budget = cfg.get("ASSIGNMENT_RETRY_BUDGET")
    if deadline is None:
        deadline = cfg.get("ASSIGNMENT_DEADLINE_SECONDS")
    return GenerationOptions(seed=seed, retry_budget=retry_budget, deadline=deadline)


def run_group_assignments(
    group_id, options: GenerationOptions | None = None, notifier=None, executor=None
) -> AssignmentSet:
    """
    Draw and store a fresh assignment set for a group.

    The group row is locked for the whole run so two draws for the same
    group cannot interleave. Prior assignments survive untouched if the
    draw fails, including when the database itself errors mid-run.
    """
    options = options or default_options()
    engine = AssignmentEngine(
        persister=SqlAlchemyAssignmentPersister(), notifier=notifier, executor=executor
    )

    try:
        _get_group(group_id, for_update=True)
        participants = _eligible_participant_ids(group_id)
        exclusions = group_exclusion_pairs(group_id)
        return engine.generate(group_id, participants, exclusions, options)
    except (AssignmentError, SQLAlchemyError):
        db.session.rollback()
        raise


def check_group_feasibility(group_id) -> FeasibilityReport:
    _get_group(group_id)
    model = ConstraintModel.build(_eligible_participant_ids(group_id), group_exclusion_pairs(group_id))
    return check_feasibility(model)


def clear_assignments(group_id) -> int:
    try:
        group = _get_group(group_id, for_update=True)
        removed = _delete_group_assignments(group_id)
        group.assignments_run_at = None
        db.session.commit()
    except (GroupNotFoundError, SQLAlchemyError):
        db.session.rollback()
        raise
    logger.info("Group %s: cleared %d assignments", group_id, removed)
    return removed


def get_group_assignments(group_id) -> list[Assignment]:
    return Assignment.query.filter_by(group_id=group_id).order_by(Assignment.santa_id).all()
