"""AutoAssignmentEngine — rule lookup → vendor tier → designer tier → result."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable

from autoassign.application.decision_log import DecisionLog
from autoassign.application.ports.assignment_log_repo import AssignmentLogRepository
from autoassign.application.ports.automation_rule_repo import AutomationRuleRepository
from autoassign.application.ports.capacity_repo import CapacityRepository
from autoassign.application.ports.service_repo import ServiceRepository
from autoassign.application.ports.service_request_repo import ServiceRequestRepository
from autoassign.application.ports.user_repo import UserRepository
from autoassign.application.ports.vendor_repo import VendorRepository
from autoassign.application.use_cases.candidate_selection import DesignerSelector, VendorSelector
from autoassign.application.use_cases.load_calculator import DailyLoadCalculator
from autoassign.domain.entities.assignment_log import AssignmentLogEntry
from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.entities.service_request import AssignmentUpdate, ServiceRequest
from autoassign.domain.errors import (
    AssignmentConflictError,
    ServiceRequestNotFoundError,
    UnsupportedCriterionError,
)
from autoassign.domain.policies.round_robin import RoundRobinState
from autoassign.domain.policies.rule_matching import rule_matches, select_applicable_rules
from autoassign.domain.value_objects.enums import AutoAssignmentStatus, RequestStatus, RuleScope

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AutomationResult:
    """Outcome of one routing attempt; nothing is persisted until apply()."""

    success: bool
    status: AutoAssignmentStatus
    note: str
    vendor_assignee_id: str | None = None
    designer_assignee_id: str | None = None
    logs: tuple[AssignmentLogEntry, ...] = ()


class AutoAssignmentEngine:
    """Routes a new service request to a vendor and, optionally, a designer.

    route() only reads from the stores; apply() is the single write path.
    The round-robin state is injected so it can outlive a single engine
    (one engine is built per DB session, the state is per process).
    """

    def __init__(
        self,
        rule_repo: AutomationRuleRepository,
        capacity_repo: CapacityRepository,
        vendor_repo: VendorRepository,
        user_repo: UserRepository,
        service_repo: ServiceRepository,
        request_repo: ServiceRequestRepository,
        log_repo: AssignmentLogRepository,
        rr_state: RoundRobinState,
        tz: tzinfo,
        internal_vendor_profile_id: str,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._rules = rule_repo
        self._requests = request_repo
        self._logs = log_repo
        self._clock = clock

        load = DailyLoadCalculator(request_repo, tz, clock)
        self._vendor_selector = VendorSelector(
            capacity_repo, vendor_repo, service_repo, load, rr_state, internal_vendor_profile_id
        )
        self._designer_selector = DesignerSelector(capacity_repo, user_repo, load, rr_state)

    async def get_active_rules(self, service_id: str) -> list[AutomationRule]:
        rules = await self._rules.get_by_scope(RuleScope.GLOBAL)
        return select_applicable_rules(rules, service_id)

    async def route(self, request: ServiceRequest) -> AutomationResult:
        """Evaluate rules in priority order; the first rule that yields a vendor wins.

        Pipeline:
        1. Skip locked or already assigned requests (no log entries).
        2. Active global rules for the service, highest priority first.
        3. Per rule: match criteria → vendor tier → designer tier (if targeted).
        """
        if request.locked_assignment:
            return AutomationResult(
                success=False,
                status=AutoAssignmentStatus.NOT_ATTEMPTED,
                note="Assignment is locked - skipping automation",
            )
        if request.has_assignment():
            return AutomationResult(
                success=False,
                status=AutoAssignmentStatus.NOT_ATTEMPTED,
                note="Request already has assignment - skipping automation",
            )

        log = DecisionLog(request.id)
        rules = await self.get_active_rules(request.service_id)
        if not rules:
            log.no_rules()
            return AutomationResult(
                success=False,
                status=AutoAssignmentStatus.NOT_ATTEMPTED,
                note="No active automation rules configured",
                logs=log.entries,
            )

        for rule in rules:
            try:
                if not rule_matches(request, rule):
                    continue
            except UnsupportedCriterionError as e:
                logger.warning("Request %s: skipping misconfigured rule %s: %s", request.id, rule.id, e)
                log.invalid_criteria(rule, e)
                continue

            log.rule_matched(rule)

            vendor = await self._vendor_selector.select(request, rule, log)
            if vendor is None:
                continue

            company = vendor.vendor.company_name or "Unknown"

            designer = None
            if rule.requires_designer():
                designer = await self._designer_selector.select(
                    request, vendor.assignee_id, rule, log
                )

            if designer is not None:
                return AutomationResult(
                    success=True,
                    status=AutoAssignmentStatus.ASSIGNED,
                    vendor_assignee_id=vendor.assignee_id,
                    designer_assignee_id=designer.assignee_id,
                    note=f"Auto-assigned to vendor {company} and designer {designer.designer.username}",
                    logs=log.entries,
                )

            if rule.requires_designer():
                return AutomationResult(
                    success=True,
                    status=AutoAssignmentStatus.PARTIAL_ASSIGNED,
                    vendor_assignee_id=vendor.assignee_id,
                    note=f"Auto-assigned to vendor {company} (no designer available)",
                    logs=log.entries,
                )
            return AutomationResult(
                success=True,
                status=AutoAssignmentStatus.ASSIGNED,
                vendor_assignee_id=vendor.assignee_id,
                note=f"Auto-assigned to vendor {company}",
                logs=log.entries,
            )

        return AutomationResult(
            success=False,
            status=AutoAssignmentStatus.FAILED_NO_VENDOR,
            note="No vendors with available capacity found for this service",
            logs=log.entries,
        )

    async def apply(self, request_id: str, result: AutomationResult) -> ServiceRequest:
        """Write the result onto the request, then persist its decision log.

        The log is only added once the conditional update has succeeded, so a
        discarded result leaves no audit trail behind.

        Raises:
            ServiceRequestNotFoundError: if the request does not exist.
            AssignmentConflictError: if the result assigns someone but the
                request was locked or assigned in the meantime.
        """
        if await self._requests.get_by_id(request_id) is None:
            raise ServiceRequestNotFoundError(request_id)

        now = self._clock()
        update = AssignmentUpdate(
            auto_assignment_status=result.status,
            last_automation_run_at=now,
            last_automation_note=result.note,
            vendor_assignee_id=result.vendor_assignee_id,
            vendor_assigned_at=now if result.vendor_assignee_id else None,
            assignee_id=result.designer_assignee_id,
            assigned_at=now if result.designer_assignee_id else None,
            status=RequestStatus.IN_PROGRESS.value if result.designer_assignee_id else None,
        )

        updated = await self._requests.update_assignment(
            request_id, update, require_unassigned=update.assigns
        )
        if updated is None:
            if update.assigns:
                raise AssignmentConflictError(request_id)
            raise ServiceRequestNotFoundError(request_id)

        if result.logs:
            await self._logs.add_many(list(result.logs))

        logger.info(
            "Request %s: automation %s (vendor=%s, designer=%s)",
            request_id, result.status.value,
            result.vendor_assignee_id, result.designer_assignee_id,
        )
        return updated

    async def process(self, request: ServiceRequest) -> tuple[AutomationResult, ServiceRequest]:
        """route() followed by apply() — the request-creation entry point."""
        result = await self.route(request)
        updated = await self.apply(request.id, result)
        return result, updated


@dataclass
class BatchItemResult:
    request_id: str
    status: AutoAssignmentStatus | None
    vendor_assignee_id: str | None
    designer_assignee_id: str | None
    note: str | None
    error: str | None = None


class BatchAutoAssignUseCase:
    """Re-attempt automation for every request still open for it.

    Each request runs inside *item_scope* (a SAVEPOINT in the SQL wiring), so
    a failed request rolls back only its own writes and the batch goes on.
    """

    def __init__(
        self,
        engine: AutoAssignmentEngine,
        request_repo: ServiceRequestRepository,
        item_scope: Callable[[], AbstractAsyncContextManager] = nullcontext,
    ):
        self._engine = engine
        self._requests = request_repo
        self._item_scope = item_scope

    async def execute(self) -> list[BatchItemResult]:
        requests = await self._requests.get_unassigned()
        logger.info("Batch auto-assignment over %d open requests", len(requests))

        results = []
        for request in requests:
            try:
                async with self._item_scope():
                    result, _ = await self._engine.process(request)
            except Exception as e:
                logger.exception("Error auto-assigning request %s", request.id)
                results.append(
                    BatchItemResult(
                        request_id=request.id,
                        status=None,
                        vendor_assignee_id=None,
                        designer_assignee_id=None,
                        note=None,
                        error=str(e),
                    )
                )
                continue
            results.append(
                BatchItemResult(
                    request_id=request.id,
                    status=result.status,
                    vendor_assignee_id=result.vendor_assignee_id,
                    designer_assignee_id=result.designer_assignee_id,
                    note=result.note,
                )
            )

        assigned = sum(1 for r in results if r.vendor_assignee_id)
        logger.info("Batch complete: %d/%d assigned", assigned, len(results))
        return results
