from __future__ import annotations
from datetime import datetime
from typing import Literal, List
from uuid import UUID
from pydantic import AwareDatetime, Field, field_validator, model_validator
from hunt_api.schemas.base import ApiModel

HuntStatus = Literal["UPCOMING", "ACTIVE", "IN_PROGRESS", "COMPLETED"]
HuntMode = Literal["sequential", "multi"]

class ClueCreate(ApiModel):
    stage_number: int = Field(ge=1)
    description: str = Field(min_length=1)

class ClueOut(ApiModel):
    id: UUID
    hunt_id: UUID
    stage_number: int
    description: str

class HuntCreate(ApiModel):
    title: str = Field(min_length=3, max_length=160)
    description: str | None = None
    status: HuntStatus = "UPCOMING"
    mode: HuntMode = "sequential"
    start_time: AwareDatetime
    end_time: AwareDatetime
    team_ids: List[UUID] = Field(default_factory=list)
    clues: List[ClueCreate] = Field(min_length=1)

    @field_validator("clues")
    @classmethod
    def contiguous_stages(cls, v: list[ClueCreate]):
        numbers = sorted(c.stage_number for c in v)
        if numbers != list(range(1, len(v) + 1)):
            raise ValueError("clue stage numbers must be 1..n without gaps or duplicates")
        return v

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self

class HuntStatusUpdate(ApiModel):
    status: HuntStatus

class HuntOut(ApiModel):
    id: UUID
    title: str
    description: str | None = None
    status: HuntStatus
    mode: HuntMode
    start_time: datetime
    end_time: datetime
    is_result_published: bool
    winning_team_id: UUID | None = None
    assigned_team_ids: list[UUID] = Field(default_factory=list)
    clues: list[ClueOut] = Field(default_factory=list)
    # computed from the stage gate at read time
    is_accessible: bool = False

class WinnerRequest(ApiModel):
    team_id: UUID
    # declare even though the hunt is not COMPLETED yet (closes it in the same step)
    override: bool = False

class TeamEligibility(ApiModel):
    team_id: UUID
    team_name: str
    approved_stages: int
    total_stages: int
    all_stages_approved: bool
