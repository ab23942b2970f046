from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from giftexchange.extensions import db
from giftexchange.models import Group, RevealMode


def _group_fields(**overrides):
    fields = {
        "name": "Office",
        "budget": 20,
        "exchange_at": datetime(2026, 12, 18, 17, tzinfo=timezone.utc),
        "timezone": "America/New_York",
        "reveal_mode": RevealMode.AUTO_AT_EXCHANGE,
        "created_by": 7,
    }
    fields.update(overrides)
    return fields


def test_complete_group_is_stored(app) -> None:
    group = Group(**_group_fields())
    db.session.add(group)
    db.session.commit()

    stored = db.session.get(Group, group.id)
    assert stored.reveal_mode is RevealMode.AUTO_AT_EXCHANGE
    assert stored.created_by == 7
    assert stored.assignments_run_at is None


@pytest.mark.parametrize("missing", ["budget", "exchange_at", "timezone", "reveal_mode", "created_by"])
def test_group_columns_are_required(app, missing) -> None:
    fields = _group_fields()
    del fields[missing]
    db.session.add(Group(**fields))

    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_negative_budget_is_rejected(app) -> None:
    db.session.add(Group(**_group_fields(budget=-1)))

    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()
