import enum
from datetime import datetime, timezone

from sqlalchemy.orm import validates

from .engine.constraints import ParticipantStatus
from .extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class RevealMode(str, enum.Enum):
    # Values were never pinned down; stored for the presentation layer only.
    MANUAL = "manual"
    AUTO_AT_EXCHANGE = "auto_at_exchange"
    NEVER = "never"


class MessageRole(str, enum.Enum):
    SANTA = "SANTA"
    RECIPIENT = "RECIPIENT"


class Group(db.Model):
    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    budget = db.Column(db.Numeric(12, 2), nullable=False)
    exchange_at = db.Column(db.DateTime(timezone=True), nullable=False)
    timezone = db.Column(db.String(64), nullable=False)  # IANA name
    reveal_mode = db.Column(
        db.Enum(RevealMode, name="reveal_mode", values_callable=_enum_values), nullable=False
    )
    # raw creator id; accounts live outside this schema
    created_by = db.Column(db.Integer, nullable=False)

    # Set by the persister on every successful run, cleared by an unset.
    assignments_run_at = db.Column(db.DateTime(timezone=True), nullable=True)

    participants = db.relationship(
        "Participant",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Participant.id",
    )

    __table_args__ = (
        db.CheckConstraint("budget >= 0", name="budget_non_negative"),
    )


class Participant(db.Model):
    __tablename__ = "participants"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    status = db.Column(
        db.Enum(ParticipantStatus, name="participant_status", values_callable=_enum_values),
        nullable=False,
        default=ParticipantStatus.INVITED,
    )
    address = db.Column(db.JSON, nullable=True)

    group = db.relationship("Group", back_populates="participants")

    __table_args__ = (
        # lets other tables reference (group_id, id) so pairs stay inside one group
        db.UniqueConstraint("group_id", "id"),
        db.UniqueConstraint("group_id", "email"),
    )

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower()


class Exclusion(db.Model):
    """
    Unordered pair: neither member may gift to the other.

    Stored with a_id < b_id so each pair has exactly one row per group.
    """
    __tablename__ = "exclusions"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    a_id = db.Column(db.Integer, nullable=False)
    b_id = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.CheckConstraint("a_id < b_id", name="ordered_pair"),
        db.UniqueConstraint("group_id", "a_id", "b_id"),
        db.ForeignKeyConstraint(
            ["group_id", "a_id"], ["participants.group_id", "participants.id"], ondelete="CASCADE"
        ),
        db.ForeignKeyConstraint(
            ["group_id", "b_id"], ["participants.group_id", "participants.id"], ondelete="CASCADE"
        ),
    )

    @property
    def pair(self) -> tuple[int, int]:
        return self.a_id, self.b_id


class Assignment(db.Model):
    __tablename__ = "assignments"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    santa_id = db.Column(db.Integer, nullable=False)
    recipient_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    santa = db.relationship(
        "Participant", primaryjoin="foreign(Assignment.santa_id) == Participant.id", viewonly=True
    )
    recipient = db.relationship(
        "Participant", primaryjoin="foreign(Assignment.recipient_id) == Participant.id", viewonly=True
    )

    __table_args__ = (
        db.CheckConstraint("santa_id <> recipient_id", name="no_self_gift"),
        # each person is santa once and recipient once per group
        db.UniqueConstraint("group_id", "santa_id"),
        db.UniqueConstraint("group_id", "recipient_id"),
        # target of the message thread composite key
        db.UniqueConstraint("group_id", "santa_id", "recipient_id"),
        db.ForeignKeyConstraint(
            ["group_id", "santa_id"], ["participants.group_id", "participants.id"], ondelete="CASCADE"
        ),
        db.ForeignKeyConstraint(
            ["group_id", "recipient_id"], ["participants.group_id", "participants.id"], ondelete="CASCADE"
        ),
    )


class MessageThread(db.Model):
    __tablename__ = "message_threads"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    santa_id = db.Column(db.Integer, nullable=False)
    recipient_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    messages = db.relationship(
        "Message", back_populates="thread", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        db.UniqueConstraint("group_id", "santa_id", "recipient_id"),
        db.ForeignKeyConstraint(
            ["group_id", "santa_id", "recipient_id"],
            ["assignments.group_id", "assignments.santa_id", "assignments.recipient_id"],
            ondelete="CASCADE",
        ),
    )


class Message(db.Model):
    __tablename__ = "messages"

    id = db.Column(db.Integer, primary_key=True)
    thread_id = db.Column(
        db.Integer, db.ForeignKey("message_threads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_role = db.Column(db.Enum(MessageRole, name="message_role", values_callable=_enum_values), nullable=False)
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    thread = db.relationship("MessageThread", back_populates="messages")

    __table_args__ = (
        db.CheckConstraint("length(text) > 0", name="text_not_empty"),
    )
