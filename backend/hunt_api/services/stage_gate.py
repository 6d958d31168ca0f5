from __future__ import annotations
from datetime import datetime
from typing import Iterable, Mapping
from uuid import UUID
from hunt_api.db import as_utc, utcnow
from hunt_api.models.hunt import Hunt, OPEN_STATUSES
from hunt_api.models.submission import (
    Submission, APPROVED, REJECTED_STATUSES, IN_FLIGHT_STATUSES,
)

NOT_STARTED = "NOT_STARTED"
STAGE_PENDING = "PENDING"
STAGE_APPROVED = "APPROVED"
STAGE_REJECTED = "REJECTED"


def is_accessible(hunt: Hunt, now: datetime | None = None) -> bool:
    """
    A hunt accepts submissions only while its status is open AND the clock is
    inside [start_time, end_time). A closed status wins over the window, so
    an admin can shut a hunt early; the end instant itself is already closed.
    """
    if hunt.status not in OPEN_STATUSES:
        return False
    now = as_utc(now or utcnow())
    return as_utc(hunt.start_time) <= now < as_utc(hunt.end_time)


def group_by_stage(
    submissions: Iterable[Submission], stage_for_clue: Mapping[UUID, int]
) -> dict[int, list[Submission]]:
    """Bucket submissions per stage number, each bucket oldest first."""
    out: dict[int, list[Submission]] = {}
    for s in sorted(submissions, key=lambda x: as_utc(x.created_at)):
        stage = stage_for_clue.get(s.clue_id)
        if stage is None:
            continue
        out.setdefault(stage, []).append(s)
    return out


def latest_non_rejected(stage_submissions: Iterable[Submission]) -> Submission | None:
    latest = None
    for s in stage_submissions:
        if s.status not in REJECTED_STATUSES:
            latest = s
    return latest


def stage_state(stage_submissions: list[Submission]) -> str:
    """
    Fold one stage's submissions (oldest first) into a single state:
      - any APPROVED                 => APPROVED (terminal, never un-approved)
      - else anything still in review => PENDING
      - else something was rejected  => REJECTED (a resubmission supersedes it)
      - else                          => NOT_STARTED

    Multi-mode stages hold several live candidates, so any approved one
    completes the stage. A leader-approved row counts as pending because it
    has not been judged by an admin yet. Sequential stages hold at most one
    live row, where this matches taking the newest non-rejected submission.
    """
    if not stage_submissions:
        return NOT_STARTED
    if any(s.status == APPROVED for s in stage_submissions):
        return STAGE_APPROVED
    if any(s.status in IN_FLIGHT_STATUSES for s in stage_submissions):
        return STAGE_PENDING
    return STAGE_REJECTED


def unlocked_stages(total_stages: int, by_stage: Mapping[int, list[Submission]]) -> list[bool]:
    """
    Single left-to-right pass over stages 1..n. Stage 1 is always open; stage
    N opens only when the newest non-rejected submission of N-1 is APPROVED.
    Index 0 of the result is stage 1.
    """
    flags: list[bool] = []
    previous_approved = True
    for stage in range(1, total_stages + 1):
        flags.append(stage == 1 or previous_approved)
        latest = latest_non_rejected(by_stage.get(stage, ()))
        previous_approved = latest is not None and latest.status == APPROVED
    return flags


def is_stage_unlocked(stage_number: int, by_stage: Mapping[int, list[Submission]]) -> bool:
    if stage_number <= 1:
        return True
    return unlocked_stages(stage_number, by_stage)[stage_number - 1]


def has_active_submission(stage_submissions: Iterable[Submission]) -> bool:
    return latest_non_rejected(stage_submissions) is not None
