from __future__ import annotations
from dataclasses import dataclass, field
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.errors import NotFound
from hunt_api.models.team import Team, TeamMember


@dataclass(frozen=True)
class TeamInfo:
    id: UUID
    name: str
    leader_user_id: UUID | None
    member_user_ids: frozenset[UUID] = field(default_factory=frozenset)

    def is_leader(self, user_id: UUID) -> bool:
        return self.leader_user_id is not None and self.leader_user_id == user_id

    def is_member(self, user_id: UUID) -> bool:
        # the leader counts as a member even if the roster omits them
        return user_id in self.member_user_ids or self.is_leader(user_id)


async def get_team(session: AsyncSession, team_id: UUID) -> TeamInfo:
    team = await session.get(Team, team_id)
    if not team:
        raise NotFound("Team not found")
    return TeamInfo(
        id=team.id,
        name=team.name,
        leader_user_id=team.leader_user_id,
        member_user_ids=frozenset(m.user_id for m in team.members),
    )


async def teams_of_user(session: AsyncSession, user_id: UUID) -> set[UUID]:
    """Teams the user leads or belongs to."""
    led = (await session.execute(select(Team.id).where(Team.leader_user_id == user_id))).scalars().all()
    member = (await session.execute(select(TeamMember.team_id).where(TeamMember.user_id == user_id))).scalars().all()
    return set(led) | set(member)
