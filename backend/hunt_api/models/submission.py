from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, ForeignKey, Uuid, Index, func
from hunt_api.db import Base, utcnow

PENDING = "PENDING"
APPROVED_BY_LEADER = "APPROVED_BY_LEADER"
REJECTED_BY_LEADER = "REJECTED_BY_LEADER"
SENT_TO_ADMIN = "SENT_TO_ADMIN"
APPROVED = "APPROVED"
REJECTED = "REJECTED"

REJECTED_STATUSES = (REJECTED_BY_LEADER, REJECTED)
IN_FLIGHT_STATUSES = (PENDING, APPROVED_BY_LEADER, SENT_TO_ADMIN)


class Submission(Base):
    """
    One member-authored candidate for a clue. Append-only: a rejected row is
    never edited back to life, the member submits a new row instead.
    """
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    clue_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("clues.id", ondelete="CASCADE"), index=True, nullable=False)
    hunt_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("hunts.id", ondelete="CASCADE"), index=True, nullable=False)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="CASCADE"), index=True, nullable=False)
    submitted_by_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    image_url: Mapped[str] = mapped_column(Text(), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False)
    status: Mapped[str] = mapped_column(String(24), nullable=False, default=PENDING)

    # leader review
    leader_notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    reviewed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # forward-to-admin step (notes are shared by the whole forwarded batch)
    forward_notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    forwarded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # admin verdict
    admin_feedback: Mapped[str | None] = mapped_column(Text(), nullable=True)
    admin_reviewed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    admin_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_submissions_team_clue_created", "team_id", "clue_id", "created_at"),
        Index("ix_submissions_hunt_status", "hunt_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Submission id={self.id} team={self.team_id} clue={self.clue_id} status={self.status}>"
