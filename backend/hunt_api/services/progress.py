from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.config import settings
from hunt_api.errors import Forbidden
from hunt_api.models.hunt import Hunt, SEQUENTIAL
from hunt_api.models.submission import Submission, IN_FLIGHT_STATUSES
from hunt_api.models.team import Team
from hunt_api.schemas.auth import CurrentUser
from hunt_api.schemas.progress import TeamProgress, CurrentStage, StageView, TeamProgressRow
from hunt_api.schemas.submission import SubmissionPublic
from hunt_api.services import stage_gate
from hunt_api.services.registry import get_hunt
from hunt_api.services.submissions import team_submissions_for_hunt
from hunt_api.services.teams import get_team


@dataclass
class _Fold:
    states: dict[int, str]
    by_stage: dict[int, list[Submission]]

    def count(self, state: str) -> int:
        return sum(1 for s in self.states.values() if s == state)

    def current_stage(self) -> int | None:
        for n in sorted(self.states):
            if self.states[n] != stage_gate.STAGE_APPROVED:
                return n
        return None


def fold(hunt: Hunt, submissions: list[Submission]) -> _Fold:
    by_stage = stage_gate.group_by_stage(submissions, {c.id: c.stage_number for c in hunt.clues})
    states = {c.stage_number: stage_gate.stage_state(by_stage.get(c.stage_number, [])) for c in hunt.clues}
    return _Fold(states=states, by_stage=by_stage)


async def _require_viewer(session: AsyncSession, hunt: Hunt, team_id: UUID, viewer: CurrentUser) -> None:
    if team_id not in hunt.assigned_team_ids:
        raise Forbidden("Team is not assigned to this hunt")
    if viewer.is_admin:
        return
    team = await get_team(session, team_id)
    if not team.is_member(viewer.id):
        raise Forbidden("You are not a member of this team")


def _public(sub: Submission, stage_number: int | None) -> SubmissionPublic:
    out = SubmissionPublic.model_validate(sub)
    out.stage_number = stage_number
    return out


async def get_progress(session: AsyncSession, hunt_id: UUID, team_id: UUID, viewer: CurrentUser) -> TeamProgress:
    """
    Team progress projection. `inFlight` is true while any submission still
    waits on a leader or admin; clients poll again after `pollAfterSeconds`.
    """
    hunt = await get_hunt(session, hunt_id)
    await _require_viewer(session, hunt, team_id, viewer)
    subs = await team_submissions_for_hunt(session, hunt.id, team_id)
    f = fold(hunt, subs)

    current = None
    n = f.current_stage()
    if n is not None:
        clue = next(c for c in hunt.clues if c.stage_number == n)
        current = CurrentStage(id=clue.id, stage_number=clue.stage_number, description=clue.description)

    stage_for_clue = {c.id: c.stage_number for c in hunt.clues}
    in_flight = any(s.status in IN_FLIGHT_STATUSES for s in subs)
    return TeamProgress(
        hunt_id=hunt.id,
        team_id=team_id,
        total_stages=len(hunt.clues),
        completed_stages=f.count(stage_gate.STAGE_APPROVED),
        pending_stages=f.count(stage_gate.STAGE_PENDING),
        rejected_stages=f.count(stage_gate.STAGE_REJECTED),
        current_stage=current,
        submissions=[_public(s, stage_for_clue.get(s.clue_id)) for s in reversed(subs)],
        in_flight=in_flight,
        poll_after_seconds=settings.progress_poll_seconds if in_flight else None,
    )


async def list_stages(
    session: AsyncSession, hunt_id: UUID, team_id: UUID, viewer: CurrentUser, now: datetime | None = None
) -> list[StageView]:
    hunt = await get_hunt(session, hunt_id)
    await _require_viewer(session, hunt, team_id, viewer)
    f = fold(hunt, await team_submissions_for_hunt(session, hunt.id, team_id))
    total = len(hunt.clues)
    if hunt.mode == SEQUENTIAL:
        unlocked = stage_gate.unlocked_stages(total, f.by_stage)
    else:
        unlocked = [True] * total
    open_now = stage_gate.is_accessible(hunt, now)
    current = f.current_stage()

    views = []
    for clue in hunt.clues:
        n = clue.stage_number
        bucket = f.by_stage.get(n, [])
        is_unlocked = unlocked[n - 1]
        can_submit = open_now and is_unlocked
        if hunt.mode == SEQUENTIAL:
            can_submit = can_submit and not stage_gate.has_active_submission(bucket)
        views.append(StageView(
            id=clue.id,
            stage_number=n,
            description=clue.description,
            state=f.states[n],
            is_unlocked=is_unlocked,
            is_current=n == current,
            can_submit=can_submit,
            latest_submission=_public(bucket[-1], n) if bucket else None,
        ))
    return views


async def teams_progress(session: AsyncSession, hunt_id: UUID, viewer: CurrentUser) -> list[TeamProgressRow]:
    if not viewer.is_admin:
        raise Forbidden("Admin only")
    hunt = await get_hunt(session, hunt_id)
    team_ids = list(hunt.assigned_team_ids)
    if not team_ids:
        return []
    names = dict((await session.execute(select(Team.id, Team.name).where(Team.id.in_(team_ids)))).all())
    subs = (await session.execute(
        select(Submission).where(Submission.hunt_id == hunt.id).order_by(Submission.created_at.asc())
    )).scalars().all()
    per_team: dict[UUID, list[Submission]] = {t: [] for t in team_ids}
    for s in subs:
        if s.team_id in per_team:
            per_team[s.team_id].append(s)

    rows = []
    for t_id in team_ids:
        f = fold(hunt, per_team[t_id])
        rows.append(TeamProgressRow(
            team_id=t_id,
            team_name=names.get(t_id, ""),
            total_stages=len(hunt.clues),
            completed_stages=f.count(stage_gate.STAGE_APPROVED),
            pending_stages=f.count(stage_gate.STAGE_PENDING),
            rejected_stages=f.count(stage_gate.STAGE_REJECTED),
            current_stage_number=f.current_stage(),
        ))
    rows.sort(key=lambda r: (-r.completed_stages, r.team_name))
    return rows
