"""Automation endpoints — run auto-assignment and inspect its decision log."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.database import get_session
from autoassign.application.ports.assignment_log_repo import AssignmentLogRepository
from autoassign.application.ports.service_request_repo import ServiceRequestRepository
from autoassign.application.use_cases.auto_assign import (
    AutoAssignmentEngine,
    AutomationResult,
    BatchAutoAssignUseCase,
)
from autoassign.domain.entities.assignment_log import AssignmentLogEntry
from autoassign.domain.entities.service_request import ServiceRequest
from autoassign.domain.errors import AssignmentConflictError, ServiceRequestNotFoundError
from autoassign.infrastructure.api.dependencies import (
    get_automation_engine,
    get_batch_auto_assign_uc,
    get_log_repo,
    get_request_repo,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/automation", tags=["automation"])


@router.post("/requests/{request_id}/run")
async def run_for_request(
    request_id: str,
    engine: AutoAssignmentEngine = Depends(get_automation_engine),
    request_repo: ServiceRequestRepository = Depends(get_request_repo),
    session: AsyncSession = Depends(get_session),
):
    """Route one service request and persist the outcome."""
    request = await request_repo.get_by_id(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Service request not found")

    try:
        result, updated = await engine.process(request)
    except ServiceRequestNotFoundError as e:
        await session.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except AssignmentConflictError as e:
        await session.rollback()
        logger.warning("Request %s: %s", request_id, e)
        raise HTTPException(status_code=409, detail=str(e))
    await session.commit()

    return {
        "status": "ok",
        "result": _result_to_dict(result),
        "request": _request_to_dict(updated),
    }


@router.post("/run")
async def run_for_open_requests(
    batch_uc: BatchAutoAssignUseCase = Depends(get_batch_auto_assign_uc),
    session: AsyncSession = Depends(get_session),
):
    """Re-attempt auto-assignment for every unlocked, unassigned request."""
    results = await batch_uc.execute()
    await session.commit()

    return {
        "status": "ok",
        "total_processed": len(results),
        "assigned": sum(1 for r in results if r.vendor_assignee_id),
        "failed": sum(1 for r in results if r.error is not None),
        "results": [
            {
                "request_id": r.request_id,
                "auto_assignment_status": r.status.value if r.status else None,
                "vendor_assignee_id": r.vendor_assignee_id,
                "designer_assignee_id": r.designer_assignee_id,
                "note": r.note,
                "error": r.error,
            }
            for r in results
        ],
    }


@router.get("/requests/{request_id}/logs")
async def get_request_logs(
    request_id: str,
    log_repo: AssignmentLogRepository = Depends(get_log_repo),
):
    """Decision log of every automation run for the request, oldest first."""
    entries = await log_repo.get_by_request(request_id)
    return {
        "request_id": request_id,
        "total": len(entries),
        "logs": [_entry_to_dict(e) for e in entries],
    }


def _entry_to_dict(e: AssignmentLogEntry) -> dict:
    return {
        "rule_id": e.rule_id,
        "step": e.step.value,
        "result": e.result.value,
        "reason": e.reason,
        "chosen_id": e.chosen_id,
        "candidates_considered": list(e.candidates_considered),
        "capacity_snapshot": (
            [s.to_dict() for s in e.capacity_snapshot] if e.capacity_snapshot is not None else None
        ),
    }


def _result_to_dict(r: AutomationResult) -> dict:
    return {
        "success": r.success,
        "auto_assignment_status": r.status.value,
        "vendor_assignee_id": r.vendor_assignee_id,
        "designer_assignee_id": r.designer_assignee_id,
        "note": r.note,
        "logs": [_entry_to_dict(e) for e in r.logs],
    }


def _request_to_dict(req: ServiceRequest) -> dict:
    return {
        "id": req.id,
        "service_id": req.service_id,
        "status": req.status,
        "vendor_assignee_id": req.vendor_assignee_id,
        "assignee_id": req.assignee_id,
        "auto_assignment_status": req.auto_assignment_status.value,
        "last_automation_note": req.last_automation_note,
    }
