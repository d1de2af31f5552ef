"""Candidate selection — vendor tier and designer tier of the routing pipeline."""

from __future__ import annotations

import logging
from typing import Sequence

from autoassign.application.decision_log import DecisionLog
from autoassign.application.ports.capacity_repo import CapacityRepository
from autoassign.application.ports.service_repo import ServiceRepository
from autoassign.application.ports.user_repo import UserRepository
from autoassign.application.ports.vendor_repo import VendorRepository
from autoassign.application.use_cases.load_calculator import DailyLoadCalculator
from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.entities.candidate import Candidate, DesignerCandidate, VendorCandidate
from autoassign.domain.entities.service_request import ServiceRequest
from autoassign.domain.policies.eligibility import is_vendor_eligible
from autoassign.domain.policies.round_robin import RoundRobinState, designer_scope, vendor_scope
from autoassign.domain.policies.routing_strategy import (
    order_designers,
    preferred_designers,
    resolve_candidate,
)
from autoassign.domain.value_objects.enums import PipelineStep, StepOutcome

logger = logging.getLogger(__name__)


def _record_selection(
    log: DecisionLog,
    step: PipelineStep,
    rule: AutomationRule,
    chosen: Candidate,
    survivors: Sequence[Candidate],
    label: str,
) -> None:
    log.record(
        step,
        StepOutcome.SELECTED,
        f"Selected {label} using {rule.strategy_name} strategy",
        rule=rule,
        chosen_id=chosen.assignee_id,
        candidates=[c.assignee_id for c in survivors],
        snapshot=[c.snapshot() for c in survivors],
    )


class VendorSelector:
    """Finds the vendor for a request under one rule.

    Steps:
    1. Capacity records for the service with auto-assign enabled.
    2. Rule allow/deny lists and pricing eligibility.
    3. Today's load; drop vendors with no capacity left.
    4. Routing strategy (round-robin scope: the service).
    """

    def __init__(
        self,
        capacity_repo: CapacityRepository,
        vendor_repo: VendorRepository,
        service_repo: ServiceRepository,
        load: DailyLoadCalculator,
        rr_state: RoundRobinState,
        internal_vendor_profile_id: str,
    ):
        self._capacities = capacity_repo
        self._vendors = vendor_repo
        self._services = service_repo
        self._load = load
        self._rr = rr_state
        self._internal_vendor_id = internal_vendor_profile_id

    async def select(
        self,
        request: ServiceRequest,
        rule: AutomationRule,
        log: DecisionLog,
    ) -> VendorCandidate | None:
        capacities = [
            c
            for c in await self._capacities.get_vendor_capacities_for_service(request.service_id)
            if c.auto_assign_enabled
        ]
        if not capacities:
            log.record(
                PipelineStep.VENDOR_SELECTION,
                StepOutcome.NO_CANDIDATES,
                "No vendors have capacity configured for this service",
                rule=rule,
            )
            return None

        profiles = {p.id: p for p in await self._vendors.get_all()}
        service = await self._services.get_by_id(request.service_id)
        service_title = service.title if service else None
        if service_title is None:
            logger.warning(
                "Request %s: service %s not found, only the internal vendor is eligible",
                request.id, request.service_id,
            )

        candidates: list[VendorCandidate] = []
        for capacity in capacities:
            vendor = profiles.get(capacity.vendor_profile_id)
            if vendor is None:
                continue
            if not is_vendor_eligible(vendor, rule, service_title, self._internal_vendor_id):
                continue

            current_load = await self._load.vendor_load(vendor.user_id, request.service_id)
            candidate = VendorCandidate(capacity=capacity, current_load=current_load, vendor=vendor)
            if candidate.available_capacity > 0:
                candidates.append(candidate)

        if not candidates:
            log.record(
                PipelineStep.VENDOR_SELECTION,
                StepOutcome.NO_CAPACITY,
                "All eligible vendors are at capacity",
                rule=rule,
                candidates=[c.vendor_profile_id for c in capacities],
            )
            return None

        chosen = resolve_candidate(
            candidates, rule.strategy_name, vendor_scope(request.service_id), self._rr
        )
        _record_selection(
            log, PipelineStep.VENDOR_SELECTION, rule, chosen, candidates, "vendor"
        )
        return chosen


class DesignerSelector:
    """Finds a designer inside the chosen vendor.

    Only active vendor designers with an auto-assign capacity record for the
    service are considered. Primary designers, then higher capacity priority,
    are preferred before the rule's strategy runs (round-robin scope: the vendor).
    """

    def __init__(
        self,
        capacity_repo: CapacityRepository,
        user_repo: UserRepository,
        load: DailyLoadCalculator,
        rr_state: RoundRobinState,
    ):
        self._capacities = capacity_repo
        self._users = user_repo
        self._load = load
        self._rr = rr_state

    async def select(
        self,
        request: ServiceRequest,
        vendor_user_id: str,
        rule: AutomationRule,
        log: DecisionLog,
    ) -> DesignerCandidate | None:
        designers = [
            u for u in await self._users.get_by_vendor(vendor_user_id)
            if u.is_designer_of(vendor_user_id)
        ]

        configured = []
        for designer in designers:
            capacity = await self._capacities.get_designer_capacity(designer.id, request.service_id)
            if capacity is not None and capacity.auto_assign_enabled:
                configured.append((designer, capacity))

        if not configured:
            reason = (
                "No active designers found for this vendor"
                if not designers
                else "No active designer has auto-assign capacity for this service"
            )
            log.record(
                PipelineStep.DESIGNER_SELECTION,
                StepOutcome.NO_CANDIDATES,
                reason,
                rule=rule,
                candidates=[d.id for d in designers],
            )
            return None

        candidates: list[DesignerCandidate] = []
        for designer, capacity in configured:
            current_load = await self._load.designer_load(designer.id, request.service_id)
            candidate = DesignerCandidate(
                capacity=capacity, current_load=current_load, designer=designer
            )
            if candidate.available_capacity > 0:
                candidates.append(candidate)

        if not candidates:
            log.record(
                PipelineStep.DESIGNER_SELECTION,
                StepOutcome.NO_CAPACITY,
                "All eligible designers are at capacity",
                rule=rule,
                candidates=[d.id for d, _ in configured],
            )
            return None

        ordered = order_designers(candidates)
        chosen = resolve_candidate(
            preferred_designers(ordered), rule.strategy_name,
            designer_scope(vendor_user_id), self._rr,
        )
        _record_selection(
            log, PipelineStep.DESIGNER_SELECTION, rule, chosen, ordered, "designer"
        )
        return chosen
