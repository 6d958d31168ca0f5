from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Text, Uuid, UniqueConstraint, func
from hunt_api.db import Base, utcnow

# Hunt.status values; ACTIVE and IN_PROGRESS are synonyms kept for older clients
UPCOMING = "UPCOMING"
ACTIVE = "ACTIVE"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"
OPEN_STATUSES = (ACTIVE, IN_PROGRESS)

# Hunt.mode values
SEQUENTIAL = "sequential"
MULTI = "multi"

class Hunt(Base):
    __tablename__ = "hunts"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=UPCOMING)  # UPCOMING|ACTIVE|IN_PROGRESS|COMPLETED
    mode: Mapped[str] = mapped_column(String(16), nullable=False, default=SEQUENTIAL)  # sequential|multi
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_result_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # write-once; only ever set through a compare-and-set in services.registry
    winning_team_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    clues: Mapped[list["Clue"]] = relationship(
        back_populates="hunt", order_by="Clue.stage_number", lazy="selectin", cascade="all, delete-orphan"
    )
    assignments: Mapped[list["HuntTeam"]] = relationship(lazy="selectin", cascade="all, delete-orphan")

    @property
    def assigned_team_ids(self) -> set[uuid.UUID]:
        return {a.team_id for a in self.assignments}


class Clue(Base):
    __tablename__ = "clues"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hunt_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("hunts.id", ondelete="CASCADE"), index=True, nullable=False)
    stage_number: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-based, contiguous
    description: Mapped[str] = mapped_column(Text(), nullable=False)

    hunt: Mapped[Hunt] = relationship(back_populates="clues")

    __table_args__ = (
        UniqueConstraint("hunt_id", "stage_number", name="uq_clue_stage_per_hunt"),
    )


class HuntTeam(Base):
    __tablename__ = "hunt_teams"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    hunt_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("hunts.id", ondelete="CASCADE"), index=True, nullable=False)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="CASCADE"), index=True, nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("hunt_id", "team_id", name="uq_hunt_team_once"),
    )
