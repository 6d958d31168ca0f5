
from __future__ import annotations
from datetime import datetime
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.errors import Forbidden, ValidationError, HuntClosed, StageLocked, DuplicateActiveSubmission, NotFound
from hunt_api.models.hunt import HuntTeam, SEQUENTIAL
from hunt_api.models.submission import Submission, PENDING
from hunt_api.schemas.auth import CurrentUser
from hunt_api.services import stage_gate
from hunt_api.services.registry import get_clue, get_hunt
from hunt_api.services.teams import get_team

log = structlog.get_logger(__name__)


async def team_submissions_for_hunt(session: AsyncSession, hunt_id: UUID, team_id: UUID) -> list[Submission]:
    q = (
        select(Submission)
        .where(Submission.hunt_id == hunt_id, Submission.team_id == team_id)
        .order_by(Submission.created_at.asc())
    )
    return list((await session.execute(q)).scalars().all())


async def create(
    session: AsyncSession,
    clue_id: UUID,
    team_id: UUID,
    submitter: CurrentUser,
    image_url: str,
    description: str,
    now: datetime | None = None,
) -> Submission:
    """
    Record a member's candidate for a clue.

    Checks run in this order: clue exists, submitter belongs to an assigned
    team, fields are non-blank, the hunt is open, and for sequential hunts the
    stage is unlocked with no other active submission for the team.
    """
    clue = await get_clue(session, clue_id)
    hunt = await get_hunt(session, clue.hunt_id)
    team = await get_team(session, team_id)
    if not team.is_member(submitter.id):
        raise Forbidden("You are not a member of this team")
    if team_id not in hunt.assigned_team_ids:
        raise Forbidden("Team is not assigned to this hunt")

    description = (description or "").strip()
    image_url = (image_url or "").strip()
    if not description:
        raise ValidationError("Description is required")
    if not image_url:
        raise ValidationError("Image URL is required")

    if not stage_gate.is_accessible(hunt, now):
        raise HuntClosed(f"Hunt is not accepting submissions (status={hunt.status})")

    if hunt.mode == SEQUENTIAL:
        await _lock_team_assignment(session, hunt.id, team_id)
        stage_for_clue = {c.id: c.stage_number for c in hunt.clues}
        by_stage = stage_gate.group_by_stage(
            await team_submissions_for_hunt(session, hunt.id, team_id), stage_for_clue
        )
        if not stage_gate.is_stage_unlocked(clue.stage_number, by_stage):
            raise StageLocked(f"Stage {clue.stage_number - 1} must be approved before stage {clue.stage_number}")
        if stage_gate.has_active_submission(by_stage.get(clue.stage_number, ())):
            raise DuplicateActiveSubmission()

    sub = Submission(
        clue_id=clue.id,
        hunt_id=hunt.id,
        team_id=team_id,
        submitted_by_user_id=submitter.id,
        image_url=image_url,
        description=description,
        status=PENDING,
    )
    session.add(sub)
    await session.commit()
    await session.refresh(sub)
    log.info(
        "submission.created",
        submission_id=str(sub.id), hunt_id=str(hunt.id), team_id=str(team_id),
        stage=clue.stage_number, by=str(submitter.id),
    )
    return sub


async def _lock_team_assignment(session: AsyncSession, hunt_id: UUID, team_id: UUID) -> None:
    """Serialize check-then-insert per team+hunt (row lock; a no-op on SQLite)."""
    await session.execute(
        select(HuntTeam.id)
        .where(HuntTeam.hunt_id == hunt_id, HuntTeam.team_id == team_id)
        .with_for_update()
    )


async def _require_team_viewer(session: AsyncSession, team_id: UUID, viewer: CurrentUser) -> None:
    if viewer.is_admin:
        return
    team = await get_team(session, team_id)
    if not team.is_member(viewer.id):
        raise Forbidden("You are not a member of this team")


async def list_by_team_clue(session: AsyncSession, team_id: UUID, clue_id: UUID, viewer: CurrentUser) -> list[Submission]:
    await get_clue(session, clue_id)
    await _require_team_viewer(session, team_id, viewer)
    q = (
        select(Submission)
        .where(Submission.team_id == team_id, Submission.clue_id == clue_id)
        .order_by(Submission.created_at.desc())
    )
    return list((await session.execute(q)).scalars().all())


async def list_by_team_member(
    session: AsyncSession, team_id: UUID, clue_id: UUID, user_id: UUID, viewer: CurrentUser
) -> list[Submission]:
    await get_clue(session, clue_id)
    await _require_team_viewer(session, team_id, viewer)
    q = (
        select(Submission)
        .where(
            Submission.team_id == team_id,
            Submission.clue_id == clue_id,
            Submission.submitted_by_user_id == user_id,
        )
        .order_by(Submission.created_at.desc())
    )
    return list((await session.execute(q)).scalars().all())


async def list_by_team(
    session: AsyncSession, team_id: UUID, viewer: CurrentUser, hunt_id: UUID | None = None
) -> list[Submission]:
    await _require_team_viewer(session, team_id, viewer)
    q = select(Submission).where(Submission.team_id == team_id)
    if hunt_id:
        q = q.where(Submission.hunt_id == hunt_id)
    q = q.order_by(Submission.created_at.desc())
    return list((await session.execute(q)).scalars().all())


async def list_for_hunt(
    session: AsyncSession, hunt_id: UUID, viewer: CurrentUser, status: str | None = None
) -> list[Submission]:
    """Admin review queue; defaults to everything for the hunt."""
    if not viewer.is_admin:
        raise Forbidden("Admin only")
    await get_hunt(session, hunt_id)
    q = select(Submission).where(Submission.hunt_id == hunt_id)
    if status:
        q = q.where(Submission.status == status)
    q = q.order_by(Submission.created_at.asc())
    return list((await session.execute(q)).scalars().all())


async def get_submission(session: AsyncSession, submission_id: UUID) -> Submission:
    sub = await session.get(Submission, submission_id)
    if not sub:
        raise NotFound("Submission not found")
