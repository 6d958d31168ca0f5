from __future__ import annotations
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

# must be set before hunt_api.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./hunt-test.db")
os.environ["SCHEDULE_HUNT_CLOSE"] = "0"
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from hunt_api.db import Base, get_session
from hunt_api.main import app
from hunt_api.models.hunt import Hunt, Clue, HuntTeam
from hunt_api.models.team import Team, TeamMember
from hunt_api.models.submission import Submission
from hunt_api.schemas.auth import CurrentUser
from hunt_api.security import make_access_token


def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def make_user(*roles: str) -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), roles=list(roles))

def auth(user: CurrentUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(str(user.id), user.roles)}"}


@dataclass
class TeamFixture:
    team: Team
    leader: CurrentUser
    members: list[CurrentUser]

    @property
    def id(self) -> uuid.UUID:
        return self.team.id

    @property
    def member(self) -> CurrentUser:
        return self.members[0]


@dataclass
class World:
    hunt: Hunt
    clues: list[Clue]
    red: TeamFixture
    blue: TeamFixture
    outsider_team: TeamFixture
    admin: CurrentUser = field(default_factory=lambda: make_user("admin"))
    stranger: CurrentUser = field(default_factory=make_user)

    def clue(self, stage: int) -> Clue:
        return self.clues[stage - 1]


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hunt.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()

@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)

@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s

@pytest_asyncio.fixture
async def client(session_factory):
    async def _get_session():
        async with session_factory() as s:
            yield s
    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _team(session: AsyncSession, name: str, n_members: int = 2) -> TeamFixture:
    leader = make_user()
    members = [make_user() for _ in range(n_members)]
    team = Team(
        name=name,
        leader_user_id=leader.id,
        members=[TeamMember(user_id=m.id) for m in members],
    )
    session.add(team)
    await session.flush()
    return TeamFixture(team=team, leader=leader, members=members)

@pytest.fixture
def make_world(session):
    """Factory: an assigned red and blue team, an unassigned third team, one hunt."""
    async def _make(
        *, status: str = "ACTIVE", mode: str = "sequential", stages: int = 3,
        start: datetime | None = None, end: datetime | None = None,
    ) -> World:
        red = await _team(session, "Red Foxes")
        blue = await _team(session, "Blue Jays")
        other = await _team(session, "Grey Owls")
        hunt = Hunt(
            title="Campus Hunt",
            description="Find the landmarks",
            status=status,
            mode=mode,
            start_time=start or now_utc() - timedelta(hours=1),
            end_time=end or now_utc() + timedelta(hours=1),
            clues=[Clue(stage_number=i, description=f"Clue {i}") for i in range(1, stages + 1)],
            assignments=[HuntTeam(team_id=red.id), HuntTeam(team_id=blue.id)],
        )
        session.add(hunt)
        await session.commit()
        return World(hunt=hunt, clues=sorted(hunt.clues, key=lambda c: c.stage_number), red=red, blue=blue, outsider_team=other)
    return _make

@pytest_asyncio.fixture
async def world(make_world) -> World:
    return await make_world()


async def force_status(session: AsyncSession, sub: Submission, status: str) -> Submission:
    """Put a row straight into a state, bypassing the review pipeline."""
    sub.status = status
    await session.commit()
    return sub

@pytest.fixture
def set_status(session):
    async def _set(sub: Submission, status: str) -> Submission:
        return await force_status(session, sub, status)
    return _set
