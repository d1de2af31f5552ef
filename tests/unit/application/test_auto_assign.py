"""Tests for AutoAssignmentEngine with in-memory fakes."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta

import pytest

from autoassign.application.use_cases.auto_assign import AutomationResult, BatchAutoAssignUseCase
from autoassign.domain.errors import AssignmentConflictError, ServiceRequestNotFoundError
from autoassign.domain.value_objects.enums import (
    AutoAssignmentStatus,
    PipelineStep,
    RoutingTarget,
    StepOutcome,
)

VENDOR_THEN_DESIGNER = RoutingTarget.VENDOR_THEN_DESIGNER


def _trail(result):
    return [(e.step, e.result) for e in result.logs]


# ─── Skips ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_locked_request_not_attempted(world):
    world.add_rule("r1")
    world.add_vendor("a")
    req = world.add_request(locked_assignment=True)

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.NOT_ATTEMPTED
    assert not result.success
    assert "locked" in result.note
    assert result.logs == ()


@pytest.mark.asyncio
async def test_already_assigned_request_not_attempted(world):
    world.add_rule("r1")
    world.add_vendor("a")
    req = world.add_request(assignee_id="someone")

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.NOT_ATTEMPTED
    assert result.note == "Request already has assignment - skipping automation"
    assert result.logs == ()


@pytest.mark.asyncio
async def test_no_rules_logs_single_entry(world):
    world.add_vendor("a")
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.NOT_ATTEMPTED
    assert result.note == "No active automation rules configured"
    assert _trail(result) == [(PipelineStep.FIND_RULES, StepOutcome.NO_RULES)]
    assert result.logs[0].rule_id is None


@pytest.mark.asyncio
async def test_inactive_and_other_service_rules_ignored(world):
    world.add_rule("off", is_active=False)
    world.add_rule("elsewhere", service_ids=["svc-other"])
    world.add_vendor("a")
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.NOT_ATTEMPTED
    assert _trail(result) == [(PipelineStep.FIND_RULES, StepOutcome.NO_RULES)]


# ─── Vendor tier ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_single_rule_single_vendor_assigned(world):
    world.add_rule("r1", priority=10)
    world.add_vendor("a", daily_capacity=5)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.success
    assert result.status == AutoAssignmentStatus.ASSIGNED
    assert result.vendor_assignee_id == "vendor-a"
    assert result.designer_assignee_id is None
    assert result.note == "Auto-assigned to vendor Vendor A"
    assert _trail(result) == [
        (PipelineStep.RULE_MATCHED, StepOutcome.MATCHED),
        (PipelineStep.VENDOR_SELECTION, StepOutcome.SELECTED),
    ]
    selected = result.logs[-1]
    assert selected.rule_id == "r1"
    assert selected.chosen_id == "vendor-a"
    assert selected.candidates_considered == ("vendor-a",)
    assert selected.capacity_snapshot[0].to_dict() == {
        "entity_id": "vp-a", "daily_capacity": 5, "current_load": 0, "available_capacity": 5,
    }
    assert selected.reason == "Selected vendor using least_loaded strategy"


@pytest.mark.asyncio
async def test_vendor_at_capacity_fails(world):
    world.add_rule("r1")
    vendor = world.add_vendor("a", daily_capacity=5)
    world.add_load(vendor=vendor, count=5)
    req = world.add_request()

    result = await world.engine().route(req)

    assert not result.success
    assert result.status == AutoAssignmentStatus.FAILED_NO_VENDOR
    assert result.note == "No vendors with available capacity found for this service"
    assert result.logs[-1].result == StepOutcome.NO_CAPACITY
    assert result.logs[-1].candidates_considered == ("vp-a",)


@pytest.mark.asyncio
async def test_yesterdays_load_does_not_count(world):
    world.add_rule("r1")
    vendor = world.add_vendor("a", daily_capacity=2)
    world.add_load(vendor=vendor, count=2, at=world.now - timedelta(days=1))
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.ASSIGNED
    assert result.logs[-1].capacity_snapshot[0].current_load == 0


@pytest.mark.asyncio
async def test_no_auto_assign_capacity_records(world):
    world.add_rule("r1")
    world.add_vendor("a", auto_assign=False)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.FAILED_NO_VENDOR
    assert _trail(result)[-1] == (PipelineStep.VENDOR_SELECTION, StepOutcome.NO_CANDIDATES)


@pytest.mark.asyncio
async def test_unpriced_vendor_skipped(world):
    world.add_rule("r1")
    world.add_vendor("a", price=None)
    world.add_vendor("b", price=0)
    world.add_vendor("c", price=7)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.vendor_assignee_id == "vendor-c"
    assert result.logs[-1].candidates_considered == ("vendor-c",)


@pytest.mark.asyncio
async def test_internal_vendor_eligible_without_pricing(world):
    world.add_rule("r1")
    internal = world.add_vendor("internal", price=None)
    internal.id = "internal-vendor-profile-001"
    world.vendor_capacities[-1].vendor_profile_id = internal.id
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.vendor_assignee_id == "vendor-internal"


@pytest.mark.asyncio
async def test_allow_and_deny_lists(world):
    world.add_rule("r1", allowed_vendor_ids=["vendor-a", "vendor-b"], excluded_vendor_ids=["vendor-a"])
    world.add_vendor("a")
    world.add_vendor("b", daily_capacity=1)
    world.add_vendor("c")
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.vendor_assignee_id == "vendor-b"


@pytest.mark.asyncio
async def test_least_loaded_vendor_chosen(world):
    world.add_rule("r1", strategy="least_loaded")
    a = world.add_vendor("a", daily_capacity=10)
    b = world.add_vendor("b", daily_capacity=10)
    world.add_load(vendor=a, count=3)
    world.add_load(vendor=b, count=1)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.vendor_assignee_id == "vendor-b"


@pytest.mark.asyncio
async def test_priority_first_vendor_chosen(world):
    world.add_rule("r1", strategy="priority_first")
    world.add_vendor("a", priority=1)
    world.add_vendor("b", priority=5)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.vendor_assignee_id == "vendor-b"


@pytest.mark.asyncio
async def test_round_robin_rotates_across_runs(world):
    world.add_rule("r1", strategy="round_robin")
    for key in ("a", "b", "c"):
        world.add_vendor(key)
    req = world.add_request()
    engine = world.engine()

    picks = [(await engine.route(req)).vendor_assignee_id for _ in range(4)]

    assert picks == ["vendor-a", "vendor-b", "vendor-c", "vendor-a"]


@pytest.mark.asyncio
async def test_round_robin_state_outlives_engine(world):
    world.add_rule("r1", strategy="round_robin")
    world.add_vendor("a")
    world.add_vendor("b")
    req = world.add_request()

    first = await world.engine().route(req)
    second = await world.engine().route(req)

    assert [first.vendor_assignee_id, second.vendor_assignee_id] == ["vendor-a", "vendor-b"]


# ─── Rule evaluation ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_falls_through_to_lower_priority_rule(world):
    world.add_rule("r-high", priority=10, allowed_vendor_ids=["vendor-a"])
    world.add_rule("r-low", priority=5)
    a = world.add_vendor("a", daily_capacity=1)
    world.add_vendor("b")
    world.add_load(vendor=a, count=1)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.ASSIGNED
    assert result.vendor_assignee_id == "vendor-b"
    assert [(e.rule_id, e.result) for e in result.logs] == [
        ("r-high", StepOutcome.MATCHED),
        ("r-high", StepOutcome.NO_CAPACITY),
        ("r-low", StepOutcome.MATCHED),
        ("r-low", StepOutcome.SELECTED),
    ]


@pytest.mark.asyncio
async def test_first_matching_rule_wins(world):
    world.add_rule("r-low", priority=1, strategy="priority_first")
    world.add_rule("r-high", priority=9, allowed_vendor_ids=["vendor-a"])
    world.add_vendor("a")
    world.add_vendor("b", priority=100)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.vendor_assignee_id == "vendor-a"
    assert {e.rule_id for e in result.logs} == {"r-high"}


@pytest.mark.asyncio
async def test_criteria_mismatch_skips_rule_silently(world):
    world.add_rule("r1", match_criteria={"clientId": "client-vip"})
    world.add_vendor("a")
    req = world.add_request(user_id="client-1")

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.FAILED_NO_VENDOR
    assert result.logs == ()


@pytest.mark.asyncio
async def test_criteria_match_on_client(world):
    world.add_rule("r1", match_criteria={"clientId": ["client-1", "client-2"]})
    world.add_vendor("a")
    req = world.add_request(user_id="client-2")

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.ASSIGNED


@pytest.mark.asyncio
async def test_unsupported_criterion_logged_and_skipped(world):
    world.add_rule("r-bad", priority=10, match_criteria={"region": "EU"})
    world.add_rule("r-good", priority=1)
    world.add_vendor("a")
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.ASSIGNED
    assert result.logs[0].step == PipelineStep.MATCH_CRITERIA
    assert result.logs[0].result == StepOutcome.INVALID_CRITERIA
    assert result.logs[0].rule_id == "r-bad"
    assert "region" in result.logs[0].reason
    assert result.logs[-1].rule_id == "r-good"


# ─── Designer tier ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_vendor_and_designer_assigned(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER)
    vendor = world.add_vendor("a")
    world.add_designer(vendor, "d1")
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.ASSIGNED
    assert result.vendor_assignee_id == "vendor-a"
    assert result.designer_assignee_id == "designer-d1"
    assert result.note == "Auto-assigned to vendor Vendor A and designer designer_d1"
    assert _trail(result) == [
        (PipelineStep.RULE_MATCHED, StepOutcome.MATCHED),
        (PipelineStep.VENDOR_SELECTION, StepOutcome.SELECTED),
        (PipelineStep.DESIGNER_SELECTION, StepOutcome.SELECTED),
    ]


@pytest.mark.asyncio
async def test_no_designers_gives_partial_assignment(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER)
    world.add_vendor("a")
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.success
    assert result.status == AutoAssignmentStatus.PARTIAL_ASSIGNED
    assert result.vendor_assignee_id == "vendor-a"
    assert result.designer_assignee_id is None
    assert result.note.endswith("(no designer available)")
    assert _trail(result)[-1] == (PipelineStep.DESIGNER_SELECTION, StepOutcome.NO_CANDIDATES)


@pytest.mark.asyncio
async def test_designers_without_capacity_record(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER)
    vendor = world.add_vendor("a")
    world.add_designer(vendor, "d1", with_capacity=False)
    world.add_designer(vendor, "d2", auto_assign=False)
    world.add_designer(vendor, "d3", is_active=False)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.PARTIAL_ASSIGNED
    last = result.logs[-1]
    assert last.result == StepOutcome.NO_CANDIDATES
    assert set(last.candidates_considered) == {"designer-d1", "designer-d2"}


@pytest.mark.asyncio
async def test_designers_at_capacity(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER)
    vendor = world.add_vendor("a")
    designer = world.add_designer(vendor, "d1", daily_capacity=1)
    world.add_load(designer=designer, count=1)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.status == AutoAssignmentStatus.PARTIAL_ASSIGNED
    assert _trail(result)[-1] == (PipelineStep.DESIGNER_SELECTION, StepOutcome.NO_CAPACITY)


@pytest.mark.asyncio
async def test_primary_designer_never_skipped(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER, strategy="least_loaded")
    vendor = world.add_vendor("a")
    idle = world.add_designer(vendor, "idle", priority=10)
    primary = world.add_designer(vendor, "primary", is_primary=True, daily_capacity=5)
    world.add_load(designer=primary, count=3)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.designer_assignee_id == primary.id
    # both survivors are still recorded, primary first
    assert result.logs[-1].candidates_considered == (primary.id, idle.id)


@pytest.mark.asyncio
async def test_full_primary_falls_back_to_others(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER, strategy="priority_first")
    vendor = world.add_vendor("a")
    primary = world.add_designer(vendor, "primary", is_primary=True, daily_capacity=1)
    world.add_designer(vendor, "low", priority=1)
    world.add_designer(vendor, "high", priority=5)
    world.add_load(designer=primary, count=1)
    req = world.add_request()

    result = await world.engine().route(req)

    assert result.designer_assignee_id == "designer-high"


@pytest.mark.asyncio
async def test_designer_round_robin_scoped_per_vendor(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER, strategy="round_robin")
    vendor = world.add_vendor("a")
    world.add_designer(vendor, "d1")
    world.add_designer(vendor, "d2")
    req = world.add_request()
    engine = world.engine()

    picks = [(await engine.route(req)).designer_assignee_id for _ in range(3)]

    assert picks == ["designer-d1", "designer-d2", "designer-d1"]
    assert world.rr_state.last_index("designer_vendor-a") == 0


# ─── apply / process ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_apply_writes_vendor_assignment_and_logs(world):
    world.add_rule("r1")
    world.add_vendor("a")
    req = world.add_request()
    engine = world.engine()

    result = await engine.route(req)
    updated = await engine.apply(req.id, result)

    assert updated.vendor_assignee_id == "vendor-a"
    assert updated.vendor_assigned_at == world.now
    assert updated.assignee_id is None
    assert updated.status == "pending"
    assert updated.auto_assignment_status == AutoAssignmentStatus.ASSIGNED
    assert updated.last_automation_run_at == world.now
    assert updated.last_automation_note == result.note
    assert world.logs == list(result.logs)


@pytest.mark.asyncio
async def test_apply_with_designer_moves_request_in_progress(world):
    world.add_rule("r1", target=VENDOR_THEN_DESIGNER)
    vendor = world.add_vendor("a")
    world.add_designer(vendor, "d1")
    req = world.add_request()

    result, updated = await world.engine().process(req)

    assert result.status == AutoAssignmentStatus.ASSIGNED
    assert updated.assignee_id == "designer-d1"
    assert updated.assigned_at == world.now
    assert updated.status == "in-progress"


@pytest.mark.asyncio
async def test_apply_failure_only_records_status(world):
    world.add_rule("r1")
    req = world.add_request()

    result, updated = await world.engine().process(req)

    assert result.status == AutoAssignmentStatus.FAILED_NO_VENDOR
    assert updated.vendor_assignee_id is None
    assert updated.auto_assignment_status == AutoAssignmentStatus.FAILED_NO_VENDOR
    assert updated.last_automation_note == result.note
    assert len(world.logs) == 2


@pytest.mark.asyncio
async def test_apply_conflict_when_assigned_meanwhile(world):
    world.add_rule("r1")
    world.add_vendor("a")
    req = world.add_request()
    engine = world.engine()

    result = await engine.route(req)
    req.vendor_assignee_id = "vendor-manual"

    with pytest.raises(AssignmentConflictError):
        await engine.apply(req.id, result)
    assert req.vendor_assignee_id == "vendor-manual"
    assert world.logs == []


@pytest.mark.asyncio
async def test_apply_unknown_request(world):
    result = AutomationResult(
        success=False, status=AutoAssignmentStatus.NOT_ATTEMPTED, note="n/a",
    )
    with pytest.raises(ServiceRequestNotFoundError):
        await world.engine().apply("missing", result)


@pytest.mark.asyncio
async def test_second_run_is_not_attempted(world):
    world.add_rule("r1")
    world.add_vendor("a")
    req = world.add_request()
    engine = world.engine()

    await engine.process(req)
    again = await engine.route(world.requests[req.id])

    assert again.status == AutoAssignmentStatus.NOT_ATTEMPTED
    assert again.logs == ()


@pytest.mark.asyncio
async def test_applied_assignment_counts_toward_load(world):
    world.add_rule("r1")
    world.add_vendor("a", daily_capacity=1)
    first = world.add_request("req-1")
    second = world.add_request("req-2")
    engine = world.engine()

    r1, _ = await engine.process(first)
    r2, _ = await engine.process(second)

    assert r1.status == AutoAssignmentStatus.ASSIGNED
    assert r2.status == AutoAssignmentStatus.FAILED_NO_VENDOR


# ─── Batch ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_batch_processes_open_requests(world):
    world.add_rule("r1")
    world.add_vendor("a", daily_capacity=1)
    world.add_request("req-1")
    world.add_request("req-2")
    world.add_request("req-locked", locked_assignment=True)

    results = await BatchAutoAssignUseCase(world.engine(), world.request_repo).execute()

    assert [r.request_id for r in results] == ["req-1", "req-2"]
    assert results[0].status == AutoAssignmentStatus.ASSIGNED
    assert results[0].vendor_assignee_id == "vendor-a"
    assert results[1].status == AutoAssignmentStatus.FAILED_NO_VENDOR
    assert world.requests["req-locked"].auto_assignment_status == AutoAssignmentStatus.NOT_ATTEMPTED


@pytest.mark.asyncio
async def test_batch_continues_after_error(world):
    world.add_rule("r1")
    world.add_vendor("a")
    world.add_request("req-1")
    world.add_request("req-2")
    engine = world.engine()
    real_process = engine.process

    async def flaky(request):
        if request.id == "req-1":
            raise RuntimeError("db hiccup")
        return await real_process(request)

    engine.process = flaky

    results = await BatchAutoAssignUseCase(engine, world.request_repo).execute()

    assert results[0].error == "db hiccup"
    assert results[0].status is None
    assert results[1].status == AutoAssignmentStatus.ASSIGNED


@pytest.mark.asyncio
async def test_batch_conflict_leaves_no_audit_trail(world):
    world.add_rule("r1")
    world.add_vendor("a")
    world.add_request("req-1")
    repo = world.request_repo
    real_update = repo.update_assignment

    async def assigned_meanwhile(request_id, changes, require_unassigned=False):
        world.requests[request_id].vendor_assignee_id = "vendor-manual"
        return await real_update(request_id, changes, require_unassigned)

    repo.update_assignment = assigned_meanwhile

    results = await BatchAutoAssignUseCase(world.engine(), repo).execute()

    assert "no longer unassigned" in results[0].error
    assert results[0].status is None
    assert world.logs == []
    assert world.requests["req-1"].vendor_assignee_id == "vendor-manual"
    assert world.requests["req-1"].auto_assignment_status == AutoAssignmentStatus.NOT_ATTEMPTED


@pytest.mark.asyncio
async def test_batch_runs_each_request_in_its_own_scope(world):
    world.add_rule("r1")
    world.add_vendor("a")
    world.add_request("req-1")
    world.add_request("req-2")
    engine = world.engine()
    real_process = engine.process
    scopes = []

    @asynccontextmanager
    async def savepoint():
        scope = {"error": None}
        scopes.append(scope)
        try:
            yield
        except Exception as e:
            scope["error"] = e
            raise

    async def flaky(request):
        if request.id == "req-1":
            raise RuntimeError("deadlock detected")
        return await real_process(request)

    engine.process = flaky

    results = await BatchAutoAssignUseCase(engine, world.request_repo, item_scope=savepoint).execute()

    assert len(scopes) == 2
    assert isinstance(scopes[0]["error"], RuntimeError)
    assert scopes[1]["error"] is None
    assert results[1].status == AutoAssignmentStatus.ASSIGNED
