from __future__ import annotations
import uuid
import pytest
from hunt_api.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from hunt_api.models.submission import (
    Submission, PENDING, APPROVED_BY_LEADER, REJECTED_BY_LEADER, SENT_TO_ADMIN, APPROVED, REJECTED,
)
from hunt_api.services import review, submissions
from conftest import make_user

ALL_STATUSES = [PENDING, APPROVED_BY_LEADER, REJECTED_BY_LEADER, SENT_TO_ADMIN, APPROVED, REJECTED]

async def _submit(session, world, stage=1, who=None):
    return await submissions.create(
        session, world.clue(stage).id, world.red.id, who or world.red.member,
        image_url="https://img.example/a.jpg", description="Bronze statue",
    )

async def _to_admin(session, world, sub):
    await review.leader_approve(session, sub.id, world.red.leader)
    await review.forward(session, world.red.id, sub.clue_id, [sub.id], world.red.leader)


@pytest.mark.asyncio
async def test_leader_approve_records_review(session, world):
    sub = await _submit(session, world)
    out = await review.leader_approve(session, sub.id, world.red.leader, notes="  nice  ")
    assert out.status == APPROVED_BY_LEADER
    assert out.leader_notes == "nice"
    assert out.reviewed_by_user_id == world.red.leader.id
    assert out.reviewed_at is not None

@pytest.mark.asyncio
async def test_leader_approve_does_not_forward(session, world):
    sub = await _submit(session, world)
    out = await review.leader_approve(session, sub.id, world.red.leader)
    assert out.status == APPROVED_BY_LEADER
    assert out.forwarded_at is None

@pytest.mark.asyncio
@pytest.mark.parametrize("status", ALL_STATUSES)
async def test_unauthorized_actor_is_forbidden_in_every_state(session, world, set_status, status):
    sub = await _submit(session, world)
    await set_status(sub, status)
    for actor in (world.red.member, world.blue.leader, world.admin):
        with pytest.raises(Forbidden):
            await review.leader_approve(session, sub.id, actor)
        with pytest.raises(Forbidden):
            await review.leader_reject(session, sub.id, actor, notes="no")
    for actor in (world.red.leader, world.red.member, make_user("judge")):
        with pytest.raises(Forbidden):
            await review.admin_approve(session, sub.id, actor)
        with pytest.raises(Forbidden):
            await review.admin_reject(session, sub.id, actor, feedback="no")

@pytest.mark.asyncio
async def test_reject_needs_a_reason(session, world):
    sub = await _submit(session, world)
    with pytest.raises(ValidationError):
        await review.leader_reject(session, sub.id, world.red.leader, notes="")
    with pytest.raises(ValidationError):
        await review.leader_reject(session, sub.id, world.red.leader, notes="   ")
    assert sub.status == PENDING

@pytest.mark.asyncio
async def test_admin_reject_needs_feedback(session, world):
    sub = await _submit(session, world)
    await _to_admin(session, world, sub)
    with pytest.raises(ValidationError):
        await review.admin_reject(session, sub.id, world.admin, feedback="")

@pytest.mark.asyncio
async def test_state_is_checked_before_notes(session, world, set_status):
    sub = await _submit(session, world)
    await set_status(sub, APPROVED)
    with pytest.raises(InvalidTransition):
        await review.leader_reject(session, sub.id, world.red.leader, notes="")

@pytest.mark.asyncio
async def test_leader_cannot_review_twice_in_different_directions(session, world):
    sub = await _submit(session, world)
    await review.leader_reject(session, sub.id, world.red.leader, notes="blurry")
    with pytest.raises(InvalidTransition):
        await review.leader_approve(session, sub.id, world.red.leader)

@pytest.mark.asyncio
async def test_repeating_a_leader_decision_is_a_noop(session, world):
    sub = await _submit(session, world)
    first = await review.leader_reject(session, sub.id, world.red.leader, notes="blurry")
    again = await review.leader_reject(session, sub.id, world.red.leader, notes="still blurry")
    assert again.status == REJECTED_BY_LEADER
    assert again.leader_notes == first.leader_notes == "blurry"


@pytest.mark.asyncio
async def test_forward_moves_approved_rows_with_shared_notes(session, make_world):
    world = await make_world(mode="multi")
    a = await _submit(session, world)
    b = await _submit(session, world, who=world.red.members[1])
    for s in (a, b):
        await review.leader_approve(session, s.id, world.red.leader)
    out = await review.forward(session, world.red.id, world.clue(1).id, [a.id, b.id], world.red.leader, notes="both good")
    assert {s.status for s in out} == {SENT_TO_ADMIN}
    assert {s.forward_notes for s in out} == {"both good"}

@pytest.mark.asyncio
async def test_forward_is_idempotent_for_rows_already_sent(session, world):
    sub = await _submit(session, world)
    await _to_admin(session, world, sub)
    out = await review.forward(session, world.red.id, sub.clue_id, [sub.id], world.red.leader)
    assert [s.status for s in out] == [SENT_TO_ADMIN]

@pytest.mark.asyncio
async def test_forward_with_a_pending_row_writes_nothing(session, make_world):
    world = await make_world(mode="multi")
    ok = await _submit(session, world)
    pending = await _submit(session, world)
    await review.leader_approve(session, ok.id, world.red.leader)
    with pytest.raises(InvalidTransition):
        await review.forward(session, world.red.id, world.clue(1).id, [ok.id, pending.id], world.red.leader)
    rows = await submissions.list_by_team_clue(session, world.red.id, world.clue(1).id, world.red.leader)
    assert {r.id: r.status for r in rows} == {ok.id: APPROVED_BY_LEADER, pending.id: PENDING}

@pytest.mark.asyncio
async def test_forward_rejects_empty_and_foreign_ids(session, world):
    sub = await _submit(session, world)
    await review.leader_approve(session, sub.id, world.red.leader)
    with pytest.raises(ValidationError):
        await review.forward(session, world.red.id, world.clue(1).id, [], world.red.leader)
    with pytest.raises(NotFound):
        await review.forward(session, world.red.id, world.clue(1).id, [sub.id, uuid.uuid4()], world.red.leader)
    with pytest.raises(NotFound):
        await review.forward(session, world.red.id, world.clue(2).id, [sub.id], world.red.leader)

@pytest.mark.asyncio
async def test_only_leader_forwards(session, world):
    sub = await _submit(session, world)
    await review.leader_approve(session, sub.id, world.red.leader)
    with pytest.raises(Forbidden):
        await review.forward(session, world.red.id, sub.clue_id, [sub.id], world.red.member)


@pytest.mark.asyncio
async def test_admin_approves_forwarded_submission(session, world):
    sub = await _submit(session, world)
    await _to_admin(session, world, sub)
    out = await review.admin_approve(session, sub.id, world.admin, feedback="Great shot")
    assert out.status == APPROVED
    assert out.admin_feedback == "Great shot"
    assert out.admin_reviewed_by_user_id == world.admin.id

@pytest.mark.asyncio
async def test_admin_approve_twice_is_a_noop(session, world):
    sub = await _submit(session, world)
    await _to_admin(session, world, sub)
    first = await review.admin_approve(session, sub.id, world.admin)
    second = await review.admin_approve(session, sub.id, world.admin)
    assert first.status == second.status == APPROVED
    assert second.admin_reviewed_at == first.admin_reviewed_at

@pytest.mark.asyncio
async def test_another_admin_cannot_repeat_a_verdict(session, world):
    sub = await _submit(session, world)
    await _to_admin(session, world, sub)
    await review.admin_approve(session, sub.id, world.admin)
    with pytest.raises(InvalidTransition):
        await review.admin_approve(session, sub.id, make_user("admin"))

@pytest.mark.asyncio
async def test_admin_cannot_judge_unforwarded_submission(session, world):
    sub = await _submit(session, world)
    await review.leader_approve(session, sub.id, world.red.leader)
    with pytest.raises(InvalidTransition):
        await review.admin_approve(session, sub.id, world.admin)

@pytest.mark.asyncio
async def test_admin_reject_is_terminal(session, world):
    sub = await _submit(session, world)
    await _to_admin(session, world, sub)
    out = await review.admin_reject(session, sub.id, world.admin, feedback="Wrong statue")
    assert out.status == REJECTED
    with pytest.raises(InvalidTransition):
        await review.admin_approve(session, sub.id, world.admin)


@pytest.mark.asyncio
async def test_lost_race_is_an_invalid_transition(session_factory, session, world):
    sub = await _submit(session, world)
    async with session_factory() as stale:
        # load the row while it is still PENDING
        assert (await stale.get(Submission, sub.id)).status == PENDING
        async with session_factory() as fast:
            await review.leader_reject(fast, sub.id, world.red.leader, notes="blurry")
        with pytest.raises(InvalidTransition):
            await review.leader_approve(stale, sub.id, world.red.leader)

@pytest.mark.asyncio
async def test_same_decision_racing_itself_succeeds(session_factory, session, world):
    sub = await _submit(session, world)
    async with session_factory() as stale:
        assert (await stale.get(Submission, sub.id)).status == PENDING
        async with session_factory() as fast:
            await review.leader_approve(fast, sub.id, world.red.leader)
        out = await review.leader_approve(stale, sub.id, world.red.leader)
        assert out.status == APPROVED_BY_LEADER
