"""
Shared fixtures: an app bound to in-memory SQLite, and a populated group.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from giftexchange import create_app
from giftexchange.engine import ParticipantStatus
from giftexchange.extensions import db
from giftexchange.models import Group, Participant, RevealMode


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "ASSIGNMENT_DEADLINE_SECONDS": 30,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def add_group(name: str, people: dict[str, ParticipantStatus]) -> tuple[Group, dict[str, Participant]]:
    group = Group(
        name=name,
        budget=25,
        exchange_at=datetime(2026, 12, 24, 18, tzinfo=timezone.utc),
        timezone="Europe/Berlin",
        reveal_mode=RevealMode.MANUAL,
        created_by=1,
    )
    db.session.add(group)
    db.session.flush()

    members = {}
    for person, status in people.items():
        p = Participant(group_id=group.id, name=person, email=f"{person.lower()}@example.com", status=status)
        db.session.add(p)
        members[person] = p
    db.session.commit()
    return group, members


@pytest.fixture
def family(app):
    """Five joined members plus one invited and one withdrawn."""
    people = {name: ParticipantStatus.JOINED for name in ("Ann", "Ben", "Cat", "Dan", "Eve")}
    people["Fay"] = ParticipantStatus.INVITED
    people["Gus"] = ParticipantStatus.WITHDRAWN
    return add_group("Family", people)
