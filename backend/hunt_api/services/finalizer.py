from __future__ import annotations
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.errors import Forbidden
from hunt_api.models.hunt import Hunt
from hunt_api.models.submission import Submission, APPROVED
from hunt_api.models.team import Team
from hunt_api.schemas.auth import CurrentUser
from hunt_api.schemas.hunt import TeamEligibility
from hunt_api.services.registry import get_hunt, set_winner


async def finalize(
    session: AsyncSession, hunt_id: UUID, team_id: UUID, actor: CurrentUser, override: bool = False
) -> Hunt:
    """Declare the winner. With override an unfinished hunt is closed in the same write."""
    if not actor.is_admin:
        raise Forbidden("Admin only")
    return await set_winner(session, hunt_id, team_id, close=override)


async def eligibility(session: AsyncSession, hunt_id: UUID, actor: CurrentUser) -> list[TeamEligibility]:
    """Advisory: how many stages each assigned team has fully approved."""
    if not actor.is_admin:
        raise Forbidden("Admin only")
    hunt = await get_hunt(session, hunt_id)
    total = len(hunt.clues)
    team_ids = list(hunt.assigned_team_ids)
    if not team_ids:
        return []

    teams = {t.id: t for t in (await session.execute(select(Team).where(Team.id.in_(team_ids)))).scalars().all()}
    approved = (await session.execute(
        select(Submission.team_id, Submission.clue_id)
        .where(Submission.hunt_id == hunt.id, Submission.status == APPROVED)
        .distinct()
    )).all()
    per_team: dict[UUID, set[UUID]] = {}
    for t_id, clue_id in approved:
        per_team.setdefault(t_id, set()).add(clue_id)

    out = []
    for t_id in team_ids:
        n = len(per_team.get(t_id, ()))
        out.append(TeamEligibility(
            team_id=t_id,
            team_name=teams[t_id].name if t_id in teams else "",
            approved_stages=n,
            total_stages=total,
            all_stages_approved=total > 0 and n == total,
        ))
    out.sort(key=lambda e: (-e.approved_stages, e.team_name))
    return out
