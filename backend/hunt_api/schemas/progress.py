from __future__ import annotations
from typing import Literal
from uuid import UUID
from pydantic import Field
from hunt_api.schemas.base import ApiModel
from hunt_api.schemas.submission import SubmissionPublic

StageState = Literal["NOT_STARTED", "PENDING", "APPROVED", "REJECTED"]

class CurrentStage(ApiModel):
    id: UUID
    stage_number: int
    description: str

class TeamProgress(ApiModel):
    hunt_id: UUID
    team_id: UUID
    total_stages: int
    completed_stages: int
    pending_stages: int
    rejected_stages: int
    current_stage: CurrentStage | None = None
    submissions: list[SubmissionPublic] = Field(default_factory=list)
    # polling contract: re-fetch after poll_after_seconds while in_flight
    in_flight: bool = False
    poll_after_seconds: int | None = None

class StageView(ApiModel):
    id: UUID
    stage_number: int
    description: str
    state: StageState
    is_unlocked: bool
    is_current: bool
    can_submit: bool
    latest_submission: SubmissionPublic | None = None

class TeamProgressRow(ApiModel):
    team_id: UUID
    team_name: str
    total_stages: int
    completed_stages: int
    pending_stages: int
    rejected_stages: int
    current_stage_number: int | None = None
