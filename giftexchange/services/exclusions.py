from __future__ import annotations

from ..extensions import db
from ..models import Exclusion, Participant


class ExclusionError(ValueError):
    pass


def _ordered(a_id: int, b_id: int) -> tuple[int, int]:
    return (a_id, b_id) if a_id < b_id else (b_id, a_id)


def _pair_filter(group_id: int, a_id: int, b_id: int):
    a, b = _ordered(a_id, b_id)
    return Exclusion.query.filter_by(group_id=group_id, a_id=a, b_id=b)


def _check_members(group_id: int, ids: set[int]) -> None:
    found = {p.id for p in Participant.query.filter(Participant.id.in_(sorted(ids)), Participant.group_id == group_id)}
    missing = ids - found
    if missing:
        raise ExclusionError(f"Participants {sorted(missing)} are not members of group {group_id}.")


def group_exclusion_pairs(group_id: int) -> list[tuple[int, int]]:
    return [e.pair for e in Exclusion.query.filter_by(group_id=group_id).order_by(Exclusion.a_id, Exclusion.b_id)]


def exclusions_for(participant_id: int) -> set[int]:
    """Ids of everyone this participant may neither give to nor receive from."""
    rows = Exclusion.query.filter((Exclusion.a_id == participant_id) | (Exclusion.b_id == participant_id)).all()
    return {e.b_id if e.a_id == participant_id else e.a_id for e in rows}


def add_exclusion(group_id: int, a_id: int, b_id: int) -> Exclusion:
    if a_id == b_id:
        raise ExclusionError("A participant cannot be excluded from themselves.")
    _check_members(group_id, {a_id, b_id})
    if _pair_filter(group_id, a_id, b_id).first():
        raise ExclusionError(f"Participants {a_id} and {b_id} are already excluded.")

    a, b = _ordered(a_id, b_id)
    exclusion = Exclusion(group_id=group_id, a_id=a, b_id=b)
    db.session.add(exclusion)
    db.session.commit()
    return exclusion


def remove_exclusion(group_id: int, a_id: int, b_id: int) -> bool:
    removed = _pair_filter(group_id, a_id, b_id).delete(synchronize_session="fetch")
    db.session.commit()
    return bool(removed)


def set_participant_exclusions(group_id: int, participant_id: int, others: set[int]) -> None:
    """
    Replace every exclusion involving participant_id with pairs to `others`.
    """
    others = set(others) - {participant_id}
    _check_members(group_id, others | {participant_id})

    Exclusion.query.filter(
        Exclusion.group_id == group_id,
        (Exclusion.a_id == participant_id) | (Exclusion.b_id == participant_id),
    ).delete(synchronize_session="fetch")
    for other in others:
        a, b = _ordered(participant_id, other)
        db.session.add(Exclusion(group_id=group_id, a_id=a, b_id=b))

    db.session.commit()
