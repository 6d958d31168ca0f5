from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.db import get_session
from hunt_api.auth_deps import get_current_user, require_admin
from hunt_api.errors import Forbidden
from hunt_api.jobs.close_hunt import schedule_close
from hunt_api.models.hunt import Hunt
from hunt_api.schemas.auth import CurrentUser
from hunt_api.schemas.hunt import HuntCreate, HuntOut, HuntStatusUpdate, WinnerRequest, TeamEligibility
from hunt_api.schemas.progress import TeamProgress, StageView, TeamProgressRow
from hunt_api.schemas.submission import SubmissionPublic, SubmissionStatus
from hunt_api.services import registry, finalizer, progress, submissions, stage_gate
from hunt_api.services.teams import get_team, teams_of_user

router = APIRouter(prefix="/hunts", tags=["hunts"])

def to_out(hunt: Hunt) -> HuntOut:
    out = HuntOut.model_validate(hunt)
    out.assigned_team_ids = sorted(hunt.assigned_team_ids, key=str)
    out.is_accessible = stage_gate.is_accessible(hunt)
    return out

@router.get("", response_model=list[HuntOut])
async def list_hunts(session: AsyncSession = Depends(get_session), user: CurrentUser = Depends(require_admin)):
    return [to_out(h) for h in await registry.list_hunts(session)]

@router.post("", response_model=HuntOut, status_code=201)
async def create_hunt(
    payload: HuntCreate,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(require_admin),
):
    hunt = await registry.create_hunt(session, payload, user)
    schedule_close(hunt.id, hunt.end_time)
    return to_out(hunt)

@router.get("/assigned", response_model=list[HuntOut])
async def list_assigned(
    team_id: UUID = Query(alias="teamId"),
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    if not user.is_admin:
        team = await get_team(session, team_id)
        if not team.is_member(user.id):
            raise Forbidden("You are not a member of this team")
    return [to_out(h) for h in await registry.list_assigned(session, team_id)]

@router.get("/{hunt_id}", response_model=HuntOut)
async def get_hunt(hunt_id: UUID, session: AsyncSession = Depends(get_session), user: CurrentUser = Depends(get_current_user)):
    hunt = await registry.get_hunt(session, hunt_id)
    if not user.is_admin and not (hunt.assigned_team_ids & await teams_of_user(session, user.id)):
        raise Forbidden("None of your teams is assigned to this hunt")
    return to_out(hunt)

@router.patch("/{hunt_id}/status", response_model=HuntOut)
async def update_status(
    hunt_id: UUID,
    payload: HuntStatusUpdate,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(require_admin),
):
    return to_out(await registry.update_status(session, hunt_id, payload.status, user))

@router.post("/{hunt_id}/publish", response_model=HuntOut)
async def publish_results(hunt_id: UUID, session: AsyncSession = Depends(get_session), user: CurrentUser = Depends(require_admin)):
    return to_out(await registry.publish_results(session, hunt_id, user))

@router.post("/{hunt_id}/winner", response_model=HuntOut)
async def declare_winner(
    hunt_id: UUID,
    payload: WinnerRequest,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return to_out(await finalizer.finalize(session, hunt_id, payload.team_id, user, override=payload.override))

@router.get("/{hunt_id}/eligibility", response_model=list[TeamEligibility])
async def eligibility(hunt_id: UUID, session: AsyncSession = Depends(get_session), user: CurrentUser = Depends(get_current_user)):
    return await finalizer.eligibility(session, hunt_id, user)

@router.get("/{hunt_id}/progress", response_model=TeamProgress)
async def team_progress(
    hunt_id: UUID,
    team_id: UUID = Query(alias="teamId"),
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await progress.get_progress(session, hunt_id, team_id, user)

@router.get("/{hunt_id}/stages", response_model=list[StageView])
async def stages(
    hunt_id: UUID,
    team_id: UUID = Query(alias="teamId"),
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await progress.list_stages(session, hunt_id, team_id, user)

@router.get("/{hunt_id}/teams-progress", response_model=list[TeamProgressRow])
async def teams_progress(hunt_id: UUID, session: AsyncSession = Depends(get_session), user: CurrentUser = Depends(get_current_user)):
    return await progress.teams_progress(session, hunt_id, user)

@router.get("/{hunt_id}/submissions", response_model=list[SubmissionPublic])
async def review_queue(
    hunt_id: UUID,
    status: SubmissionStatus | None = Query(default=None),
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    # admin queue; ?status=SENT_TO_ADMIN is what the review screen asks for
    return await submissions.list_for_hunt(session, hunt_id, user, status)
