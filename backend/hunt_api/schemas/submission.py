from __future__ import annotations
from datetime import datetime
from typing import Literal, List
from uuid import UUID
from pydantic import Field
from hunt_api.schemas.base import ApiModel

SubmissionStatus = Literal[
    "PENDING", "APPROVED_BY_LEADER", "REJECTED_BY_LEADER", "SENT_TO_ADMIN", "APPROVED", "REJECTED"
]

class SubmissionCreate(ApiModel):
    team_id: UUID
    # blank strings are rejected by the store with a 400, not by the schema
    description: str = ""
    image_url: str = ""

class SubmissionPublic(ApiModel):
    id: UUID
    clue_id: UUID
    hunt_id: UUID
    team_id: UUID
    submitted_by_user_id: UUID
    image_url: str
    description: str
    status: SubmissionStatus
    leader_notes: str | None = None
    reviewed_by_user_id: UUID | None = None
    reviewed_at: datetime | None = None
    forward_notes: str | None = None
    forwarded_at: datetime | None = None
    admin_feedback: str | None = None
    admin_reviewed_by_user_id: UUID | None = None
    admin_reviewed_at: datetime | None = None
    created_at: datetime
    # filled in by progress views
    stage_number: int | None = None

class LeaderApprove(ApiModel):
    notes: str | None = None

class LeaderReject(ApiModel):
    notes: str = ""

class ForwardRequest(ApiModel):
    submission_ids: List[UUID] = Field(default_factory=list)
    notes: str | None = None

class AdminApprove(ApiModel):
    feedback: str | None = None

class AdminReject(ApiModel):
    feedback: str = ""

class ImageStored(ApiModel):
    url: str
    content_type: str
    size: int
