from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.db import utcnow
from hunt_api.errors import NotFound, Forbidden, AlreadyFinalized, TeamNotAssigned, InvalidTransition, ValidationError
from hunt_api.models.hunt import Hunt, Clue, HuntTeam, COMPLETED
from hunt_api.models.team import Team
from hunt_api.schemas.auth import CurrentUser
from hunt_api.schemas.hunt import HuntCreate

log = structlog.get_logger(__name__)


async def get_hunt(session: AsyncSession, hunt_id: UUID) -> Hunt:
    hunt = await session.get(Hunt, hunt_id)
    if not hunt:
        raise NotFound("Hunt not found")
    return hunt


async def get_clue(session: AsyncSession, clue_id: UUID) -> Clue:
    clue = await session.get(Clue, clue_id)
    if not clue:
        raise NotFound("Clue not found")
    return clue


async def list_assigned(session: AsyncSession, team_id: UUID) -> list[Hunt]:
    q = (
        select(Hunt)
        .join(HuntTeam, HuntTeam.hunt_id == Hunt.id)
        .where(HuntTeam.team_id == team_id)
        .order_by(Hunt.start_time.asc())
    )
    return list((await session.execute(q)).scalars().all())


async def list_hunts(session: AsyncSession) -> list[Hunt]:
    q = select(Hunt).order_by(Hunt.created_at.desc())
    return list((await session.execute(q)).scalars().all())


def _require_admin(actor: CurrentUser) -> None:
    if not actor.is_admin:
        raise Forbidden("Admin only")


async def create_hunt(session: AsyncSession, payload: HuntCreate, actor: CurrentUser) -> Hunt:
    """Hunts are created with their full clue list; clues are immutable afterwards."""
    _require_admin(actor)
    team_ids = list(dict.fromkeys(payload.team_ids))
    if team_ids:
        found = set((await session.execute(select(Team.id).where(Team.id.in_(team_ids)))).scalars().all())
        missing = [str(t) for t in team_ids if t not in found]
        if missing:
            raise NotFound(f"Unknown team(s): {', '.join(missing)}")

    hunt = Hunt(
        title=payload.title.strip(),
        description=payload.description,
        status=payload.status,
        mode=payload.mode,
        start_time=payload.start_time,
        end_time=payload.end_time,
        created_by_user_id=actor.id,
        clues=[Clue(stage_number=c.stage_number, description=c.description) for c in payload.clues],
        assignments=[HuntTeam(team_id=t) for t in team_ids],
    )
    session.add(hunt)
    await session.commit()
    await session.refresh(hunt)
    log.info("hunt.created", hunt_id=str(hunt.id), stages=len(payload.clues), teams=len(team_ids), mode=hunt.mode)
    return hunt


async def update_status(session: AsyncSession, hunt_id: UUID, status: str, actor: CurrentUser) -> Hunt:
    """Admin force-open/close. A hunt with a winner stays COMPLETED."""
    _require_admin(actor)
    hunt = await get_hunt(session, hunt_id)
    if hunt.winning_team_id is not None and status != COMPLETED:
        raise InvalidTransition("Hunt already has a winner and cannot be reopened")
    prev = hunt.status
    hunt.status = status
    await session.commit()
    await session.refresh(hunt)
    log.info("hunt.status_changed", hunt_id=str(hunt.id), from_status=prev, to_status=status, by=str(actor.id))
    return hunt


async def publish_results(session: AsyncSession, hunt_id: UUID, actor: CurrentUser) -> Hunt:
    _require_admin(actor)
    hunt = await get_hunt(session, hunt_id)
    if hunt.winning_team_id is None:
        raise ValidationError("Declare a winner before publishing results")
    if not hunt.is_result_published:
        hunt.is_result_published = True
        await session.commit()
        await session.refresh(hunt)
        log.info("hunt.results_published", hunt_id=str(hunt.id))
    return hunt


async def set_winner(session: AsyncSession, hunt_id: UUID, team_id: UUID, *, close: bool = False) -> Hunt:
    """
    Write-once winner assignment. The UPDATE only matches while
    winning_team_id IS NULL, so of two concurrent callers exactly one row
    update lands and the other observes AlreadyFinalized.

    `close` also moves the hunt to COMPLETED in the same statement; without
    it the hunt must already be COMPLETED.
    """
    hunt = await get_hunt(session, hunt_id)
    if team_id not in hunt.assigned_team_ids:
        raise TeamNotAssigned()

    conditions = [Hunt.id == hunt_id, Hunt.winning_team_id.is_(None)]
    values: dict = {"winning_team_id": team_id, "updated_at": utcnow()}
    if close:
        values["status"] = COMPLETED
    else:
        conditions.append(Hunt.status == COMPLETED)

    res = await session.execute(
        update(Hunt).where(*conditions).values(**values).execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        current = await session.get(Hunt, hunt_id, populate_existing=True)
        if current is not None and current.winning_team_id is not None:
            raise AlreadyFinalized()
        raise InvalidTransition("Hunt must be COMPLETED before a winner is declared")
    await session.commit()
    hunt = await session.get(Hunt, hunt_id, populate_existing=True)
    log.info("hunt.winner_set", hunt_id=str(hunt_id), team_id=str(team_id), closed=close)
    return hunt
