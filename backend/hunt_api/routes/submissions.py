from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.db import get_session
from hunt_api.auth_deps import get_current_user
from hunt_api.schemas.auth import CurrentUser
from hunt_api.schemas.submission import (
    SubmissionCreate, SubmissionPublic, LeaderApprove, LeaderReject, ForwardRequest, AdminApprove, AdminReject,
)
from hunt_api.services import submissions, review

router = APIRouter(tags=["submissions"])

@router.post("/clues/{clue_id}/submissions", response_model=SubmissionPublic, status_code=201)
async def create_submission(
    clue_id: UUID,
    payload: SubmissionCreate,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await submissions.create(
        session, clue_id, payload.team_id, user, image_url=payload.image_url, description=payload.description
    )

@router.get("/teams/{team_id}/clues/{clue_id}/submissions", response_model=list[SubmissionPublic])
async def list_clue_submissions(
    team_id: UUID,
    clue_id: UUID,
    mine: bool = Query(default=False, description="true = only my own submissions"),
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    if mine:
        return await submissions.list_by_team_member(session, team_id, clue_id, user.id, user)
    return await submissions.list_by_team_clue(session, team_id, clue_id, user)

@router.get("/teams/{team_id}/submissions", response_model=list[SubmissionPublic])
async def list_team_submissions(
    team_id: UUID,
    hunt_id: UUID | None = Query(default=None, alias="huntId"),
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await submissions.list_by_team(session, team_id, user, hunt_id)

@router.post("/submissions/{submission_id}/leader-approve", response_model=SubmissionPublic)
async def leader_approve(
    submission_id: UUID,
    payload: LeaderApprove | None = None,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await review.leader_approve(session, submission_id, user, payload.notes if payload else None)

@router.post("/submissions/{submission_id}/leader-reject", response_model=SubmissionPublic)
async def leader_reject(
    submission_id: UUID,
    payload: LeaderReject,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await review.leader_reject(session, submission_id, user, payload.notes)

@router.post("/teams/{team_id}/clues/{clue_id}/forward-to-admin", response_model=list[SubmissionPublic])
async def forward_to_admin(
    team_id: UUID,
    clue_id: UUID,
    payload: ForwardRequest,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await review.forward(session, team_id, clue_id, payload.submission_ids, user, payload.notes)

@router.post("/submissions/{submission_id}/admin-approve", response_model=SubmissionPublic)
async def admin_approve(
    submission_id: UUID,
    payload: AdminApprove | None = None,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await review.admin_approve(session, submission_id, user, payload.feedback if payload else None)

@router.post("/submissions/{submission_id}/admin-reject", response_model=SubmissionPublic)
async def admin_reject(
    submission_id: UUID,
    payload: AdminReject,
    session: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(get_current_user),
):
    return await review.admin_reject(session, submission_id, user, payload.feedback)
