from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from hunt_api.db import utcnow
from hunt_api.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from hunt_api.models.submission import (
    Submission, PENDING, APPROVED_BY_LEADER, REJECTED_BY_LEADER, SENT_TO_ADMIN, APPROVED, REJECTED,
)
from hunt_api.schemas.auth import CurrentUser
from hunt_api.services.registry import get_clue
from hunt_api.services.submissions import get_submission
from hunt_api.services.teams import get_team

log = structlog.get_logger(__name__)


def _clean(text: str | None) -> str | None:
    text = (text or "").strip()
    return text or None


async def _require_leader(session: AsyncSession, team_id: UUID, actor: CurrentUser) -> None:
    team = await get_team(session, team_id)
    if not team.is_leader(actor.id):
        raise Forbidden("Only the team leader can review submissions")


def _require_admin(actor: CurrentUser) -> None:
    if not actor.is_admin:
        raise Forbidden("Admin only")


def _already_done(sub: Submission, target: str, actor_field: str, actor: CurrentUser) -> bool:
    return sub.status == target and getattr(sub, actor_field) == actor.id


async def _transition(
    session: AsyncSession,
    sub: Submission,
    *,
    expected: str,
    target: str,
    actor_field: str,
    actor: CurrentUser,
    values: dict,
) -> Submission:
    """
    Compare-and-set one row from `expected` to `target`. A concurrent writer
    that got there first leaves rowcount at 0; if it was the same actor
    moving to the same state we report success, otherwise the caller lost.
    """
    res = await session.execute(
        update(Submission)
        .where(Submission.id == sub.id, Submission.status == expected)
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        current = await session.get(Submission, sub.id, populate_existing=True)
        if current is not None and _already_done(current, target, actor_field, actor):
            return current
        raise InvalidTransition(
            f"Submission is {current.status if current else 'gone'}, expected {expected}"
        )
    await session.commit()
    updated = await session.get(Submission, sub.id, populate_existing=True)
    log.info(
        "submission.transition",
        submission_id=str(sub.id), from_status=expected, to_status=target, by=str(actor.id),
    )
    return updated


async def _leader_step(
    session: AsyncSession, submission_id: UUID, actor: CurrentUser, target: str, notes: str | None, *, require_notes: bool
) -> Submission:
    sub = await get_submission(session, submission_id)
    await _require_leader(session, sub.team_id, actor)
    if _already_done(sub, target, "reviewed_by_user_id", actor):
        return sub
    if sub.status != PENDING:
        raise InvalidTransition(f"Submission is {sub.status}; only PENDING submissions can be reviewed by the leader")
    notes = _clean(notes)
    if require_notes and not notes:
        raise ValidationError("A reason is required when rejecting a submission")
    return await _transition(
        session, sub,
        expected=PENDING, target=target, actor_field="reviewed_by_user_id", actor=actor,
        values={"leader_notes": notes, "reviewed_by_user_id": actor.id, "reviewed_at": utcnow()},
    )


async def leader_approve(session: AsyncSession, submission_id: UUID, actor: CurrentUser, notes: str | None = None) -> Submission:
    return await _leader_step(session, submission_id, actor, APPROVED_BY_LEADER, notes, require_notes=False)


async def leader_reject(session: AsyncSession, submission_id: UUID, actor: CurrentUser, notes: str | None = None) -> Submission:
    return await _leader_step(session, submission_id, actor, REJECTED_BY_LEADER, notes, require_notes=True)


async def forward(
    session: AsyncSession,
    team_id: UUID,
    clue_id: UUID,
    submission_ids: list[UUID],
    actor: CurrentUser,
    notes: str | None = None,
) -> list[Submission]:
    """
    Send the leader's picks for one clue to the admins as a batch.

    Rows already SENT_TO_ADMIN are left as they are. Any row in another state
    than APPROVED_BY_LEADER fails the whole batch before anything is written.
    """
    await get_clue(session, clue_id)
    await _require_leader(session, team_id, actor)
    ids = list(dict.fromkeys(submission_ids))
    if not ids:
        raise ValidationError("Select at least one submission to forward")

    rows = (await session.execute(
        select(Submission).where(
            Submission.id.in_(ids), Submission.team_id == team_id, Submission.clue_id == clue_id
        )
    )).scalars().all()
    by_id = {s.id: s for s in rows}
    missing = [str(i) for i in ids if i not in by_id]
    if missing:
        raise NotFound(f"Submission(s) not found for this team and clue: {', '.join(missing)}")

    bad = [s for s in rows if s.status not in (APPROVED_BY_LEADER, SENT_TO_ADMIN)]
    if bad:
        raise InvalidTransition(
            "Only leader-approved submissions can be forwarded: "
            + ", ".join(f"{s.id}={s.status}" for s in bad)
        )

    to_move = [s.id for s in rows if s.status == APPROVED_BY_LEADER]
    if to_move:
        res = await session.execute(
            update(Submission)
            .where(Submission.id.in_(to_move), Submission.status == APPROVED_BY_LEADER)
            .values(status=SENT_TO_ADMIN, forward_notes=_clean(notes), forwarded_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != len(to_move):
            await session.rollback()
            raise InvalidTransition("Submissions changed while forwarding; refresh and retry")
        await session.commit()
        log.info(
            "submission.transition",
            submission_ids=[str(i) for i in to_move], from_status=APPROVED_BY_LEADER,
            to_status=SENT_TO_ADMIN, by=str(actor.id),
        )

    refreshed = (await session.execute(
        select(Submission)
        .where(Submission.id.in_(ids))
        .order_by(Submission.created_at.asc())
        .execution_options(populate_existing=True)
    )).scalars().all()
    return list(refreshed)


async def _admin_step(
    session: AsyncSession, submission_id: UUID, actor: CurrentUser, target: str, feedback: str | None, *, require_feedback: bool
) -> Submission:
    _require_admin(actor)
    sub = await get_submission(session, submission_id)
    if _already_done(sub, target, "admin_reviewed_by_user_id", actor):
        return sub
    if sub.status != SENT_TO_ADMIN:
        raise InvalidTransition(f"Submission is {sub.status}; only forwarded submissions can be judged")
    feedback = _clean(feedback)
    if require_feedback and not feedback:
        raise ValidationError("Feedback is required when rejecting a submission")
    return await _transition(
        session, sub,
        expected=SENT_TO_ADMIN, target=target, actor_field="admin_reviewed_by_user_id", actor=actor,
        values={"admin_feedback": feedback, "admin_reviewed_by_user_id": actor.id, "admin_reviewed_at": utcnow()},
    )


async def admin_approve(session: AsyncSession, submission_id: UUID, actor: CurrentUser, feedback: str | None = None) -> Submission:
    return await _admin_step(session, submission_id, actor, APPROVED, feedback, require_feedback=False)


async def admin_reject(session: AsyncSession, submission_id: UUID, actor: CurrentUser, feedback: str | None = None) -> Submission:
    return await _admin_step(session, submission_id, actor, REJECTED, feedback, require_feedback=True)
