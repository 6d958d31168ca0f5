from __future__ import annotations
import pytest
from hunt_api.errors import Forbidden
from hunt_api.models.submission import APPROVED, REJECTED_BY_LEADER, PENDING
from hunt_api.services import progress, review, submissions


async def _submit(session, world, stage=1, team=None, who=None):
    team = team or world.red
    return await submissions.create(
        session, world.clue(stage).id, team.id, who or team.member,
        image_url="https://img.example/p.jpg", description="by the fountain",
    )


@pytest.mark.asyncio
async def test_fresh_team_starts_at_stage_one(session, world):
    p = await progress.get_progress(session, world.hunt.id, world.red.id, world.red.member)
    assert p.total_stages == 3
    assert (p.completed_stages, p.pending_stages, p.rejected_stages) == (0, 0, 0)
    assert p.current_stage.stage_number == 1
    assert p.current_stage.id == world.clue(1).id
    assert not p.in_flight
    assert p.poll_after_seconds is None

@pytest.mark.asyncio
async def test_approve_forward_admin_approve_completes_stage(session, world):
    sub = await _submit(session, world)
    await review.leader_approve(session, sub.id, world.red.leader)
    await review.forward(session, world.red.id, sub.clue_id, [sub.id], world.red.leader)
    await review.admin_approve(session, sub.id, world.admin, feedback="Great shot")

    p = await progress.get_progress(session, world.hunt.id, world.red.id, world.red.leader)
    assert p.completed_stages == 1
    assert p.submissions[0].status == APPROVED
    assert p.submissions[0].admin_feedback == "Great shot"
    assert p.current_stage.stage_number == 2
    assert not p.in_flight

@pytest.mark.asyncio
async def test_resubmission_supersedes_rejection(session, world):
    first = await _submit(session, world)
    await review.leader_reject(session, first.id, world.red.leader, notes="blurry")
    second = await _submit(session, world)

    p = await progress.get_progress(session, world.hunt.id, world.red.id, world.red.member)
    assert p.rejected_stages == 0
    assert p.pending_stages == 1
    statuses = {s.id: s.status for s in p.submissions}
    assert statuses == {first.id: REJECTED_BY_LEADER, second.id: PENDING}
    assert p.submissions[0].id == second.id
    assert p.submissions[0].stage_number == 1
    assert p.in_flight
    assert p.poll_after_seconds == 10

@pytest.mark.asyncio
async def test_rejected_stage_counts_until_resubmitted(session, world):
    sub = await _submit(session, world)
    await review.leader_reject(session, sub.id, world.red.leader, notes="wrong place")
    p = await progress.get_progress(session, world.hunt.id, world.red.id, world.red.member)
    assert (p.completed_stages, p.pending_stages, p.rejected_stages) == (0, 0, 1)
    assert p.current_stage.stage_number == 1

@pytest.mark.asyncio
async def test_all_stages_done_has_no_current_stage(session, make_world, set_status):
    world = await make_world(stages=1)
    sub = await _submit(session, world)
    await set_status(sub, APPROVED)
    p = await progress.get_progress(session, world.hunt.id, world.red.id, world.red.member)
    assert p.completed_stages == 1
    assert p.current_stage is None

@pytest.mark.asyncio
async def test_progress_is_private_to_the_team(session, world):
    with pytest.raises(Forbidden):
        await progress.get_progress(session, world.hunt.id, world.red.id, world.blue.member)
    with pytest.raises(Forbidden):
        await progress.get_progress(session, world.hunt.id, world.outsider_team.id, world.admin)
    p = await progress.get_progress(session, world.hunt.id, world.red.id, world.admin)
    assert p.team_id == world.red.id


@pytest.mark.asyncio
async def test_stage_list_follows_the_gate(session, world, set_status):
    stages = await progress.list_stages(session, world.hunt.id, world.red.id, world.red.member)
    assert [(s.stage_number, s.is_unlocked, s.can_submit, s.is_current) for s in stages] == [
        (1, True, True, True), (2, False, False, False), (3, False, False, False),
    ]
    sub = await _submit(session, world)
    stages = await progress.list_stages(session, world.hunt.id, world.red.id, world.red.member)
    assert stages[0].state == "PENDING"
    assert not stages[0].can_submit
    assert stages[0].latest_submission.id == sub.id

    await set_status(sub, APPROVED)
    stages = await progress.list_stages(session, world.hunt.id, world.red.id, world.red.member)
    assert stages[0].state == "APPROVED"
    assert stages[1].is_unlocked and stages[1].can_submit and stages[1].is_current
    assert not stages[2].is_unlocked

@pytest.mark.asyncio
async def test_stage_list_multi_mode_everything_open(session, make_world):
    world = await make_world(mode="multi")
    await _submit(session, world, stage=3)
    stages = await progress.list_stages(session, world.hunt.id, world.red.id, world.red.member)
    assert all(s.is_unlocked and s.can_submit for s in stages)

@pytest.mark.asyncio
async def test_closed_hunt_disables_submitting(session, make_world):
    world = await make_world(status="UPCOMING")
    stages = await progress.list_stages(session, world.hunt.id, world.red.id, world.red.member)
    assert stages[0].is_unlocked
    assert not stages[0].can_submit


@pytest.mark.asyncio
async def test_teams_progress_for_admin(session, world, set_status):
    sub = await _submit(session, world)
    await set_status(sub, APPROVED)
    await _submit(session, world, team=world.blue)
    rows = await progress.teams_progress(session, world.hunt.id, world.admin)
    assert [r.team_id for r in rows] == [world.red.id, world.blue.id]
    assert rows[0].completed_stages == 1 and rows[0].current_stage_number == 2
    assert rows[1].pending_stages == 1 and rows[1].current_stage_number == 1
    with pytest.raises(Forbidden):
        await progress.teams_progress(session, world.hunt.id, world.red.leader)
