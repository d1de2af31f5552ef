"""Pytest configuration, in-memory port fakes and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from autoassign.application.ports.assignment_log_repo import AssignmentLogRepository
from autoassign.application.ports.automation_rule_repo import AutomationRuleRepository
from autoassign.application.ports.capacity_repo import CapacityRepository
from autoassign.application.ports.service_repo import ServiceRepository
from autoassign.application.ports.service_request_repo import ServiceRequestRepository
from autoassign.application.ports.user_repo import UserRepository
from autoassign.application.ports.vendor_repo import VendorRepository
from autoassign.application.use_cases.auto_assign import AutoAssignmentEngine
from autoassign.domain.entities.assignment_log import AssignmentLogEntry
from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.entities.capacity import VendorDesignerCapacity, VendorServiceCapacity
from autoassign.domain.entities.service import Service
from autoassign.domain.entities.service_request import ServiceRequest
from autoassign.domain.entities.user import User
from autoassign.domain.entities.vendor import VendorProfile
from autoassign.domain.policies.round_robin import RoundRobinState
from autoassign.domain.value_objects.enums import RoutingTarget, RuleScope, UserRole

SERVICE_ID = "svc-vector"
SERVICE_TITLE = "Vectorization"
INTERNAL_VENDOR_PROFILE_ID = "internal-vendor-profile-001"
NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeRuleRepo(AutomationRuleRepository):
    def __init__(self, world: World):
        self._w = world

    async def get_by_scope(self, scope):
        return [r for r in self._w.rules if r.scope == scope]


class FakeCapacityRepo(CapacityRepository):
    def __init__(self, world: World):
        self._w = world

    async def get_vendor_capacities_for_service(self, service_id):
        return [c for c in self._w.vendor_capacities if c.service_id == service_id]

    async def get_designer_capacity(self, user_id, service_id):
        return next(
            (
                c for c in self._w.designer_capacities
                if c.user_id == user_id and c.service_id == service_id
            ),
            None,
        )


class FakeVendorRepo(VendorRepository):
    def __init__(self, world: World):
        self._w = world

    async def get_all(self):
        return list(self._w.vendors)


class FakeUserRepo(UserRepository):
    def __init__(self, world: World):
        self._w = world

    async def get_by_vendor(self, vendor_user_id):
        return [u for u in self._w.users if u.vendor_id == vendor_user_id]


class FakeServiceRepo(ServiceRepository):
    def __init__(self, world: World):
        self._w = world

    async def get_by_id(self, service_id):
        return self._w.services.get(service_id)


class FakeServiceRequestRepo(ServiceRequestRepository):
    def __init__(self, world: World):
        self._w = world

    async def get_by_id(self, request_id):
        return self._w.requests.get(request_id)

    async def get_assigned_to_vendor(self, vendor_user_id, service_id):
        return [
            r for r in self._w.requests.values()
            if r.vendor_assignee_id == vendor_user_id and r.service_id == service_id
        ]

    async def get_assigned_to_designer(self, designer_id, service_id):
        return [
            r for r in self._w.requests.values()
            if r.assignee_id == designer_id and r.service_id == service_id
        ]

    async def get_unassigned(self):
        return [r for r in self._w.requests.values() if r.is_open_for_automation()]

    async def update_assignment(self, request_id, changes, require_unassigned=False):
        req = self._w.requests.get(request_id)
        if req is None:
            return None
        if require_unassigned and not req.is_open_for_automation():
            return None
        req.auto_assignment_status = changes.auto_assignment_status
        req.last_automation_run_at = changes.last_automation_run_at
        req.last_automation_note = changes.last_automation_note
        if changes.vendor_assignee_id is not None:
            req.vendor_assignee_id = changes.vendor_assignee_id
            req.vendor_assigned_at = changes.vendor_assigned_at
        if changes.assignee_id is not None:
            req.assignee_id = changes.assignee_id
            req.assigned_at = changes.assigned_at
        if changes.status is not None:
            req.status = changes.status
        return req


class FakeLogRepo(AssignmentLogRepository):
    def __init__(self, world: World):
        self._w = world

    async def add_many(self, entries):
        self._w.logs.extend(entries)

    async def get_by_request(self, request_id):
        return [e for e in self._w.logs if e.request_id == request_id]


# ─── World builder ───────────────────────────────────────────────────


class World:
    """A small in-memory marketplace: one service, vendors, designers, rules."""

    def __init__(self):
        self.rules: list[AutomationRule] = []
        self.vendor_capacities: list[VendorServiceCapacity] = []
        self.designer_capacities: list[VendorDesignerCapacity] = []
        self.vendors: list[VendorProfile] = []
        self.users: list[User] = []
        self.services: dict[str, Service] = {SERVICE_ID: Service(id=SERVICE_ID, title=SERVICE_TITLE)}
        self.requests: dict[str, ServiceRequest] = {}
        self.logs: list[AssignmentLogEntry] = []
        self.rr_state = RoundRobinState()
        self.now = NOW
        self.request_repo = FakeServiceRequestRepo(self)
        self.log_repo = FakeLogRepo(self)

    def add_vendor(
        self, key, daily_capacity=5, auto_assign=True, priority=0, price=10,
        service_id=SERVICE_ID,
    ) -> VendorProfile:
        vendor = VendorProfile(
            id=f"vp-{key}",
            user_id=f"vendor-{key}",
            company_name=f"Vendor {key.upper()}",
            pricing_agreements={SERVICE_TITLE: {"basePrice": price}} if price is not None else {},
        )
        self.vendors.append(vendor)
        self.vendor_capacities.append(
            VendorServiceCapacity(
                id=f"vc-{key}", vendor_profile_id=vendor.id, service_id=service_id,
                daily_capacity=daily_capacity, auto_assign_enabled=auto_assign, priority=priority,
            )
        )
        return vendor

    def add_designer(
        self, vendor, key, daily_capacity=3, auto_assign=True, priority=0,
        is_primary=False, is_active=True, with_capacity=True,
    ) -> User:
        designer = User(
            id=f"designer-{key}", username=f"designer_{key}",
            role=UserRole.VENDOR_DESIGNER.value, is_active=is_active, vendor_id=vendor.user_id,
        )
        self.users.append(designer)
        if with_capacity:
            self.designer_capacities.append(
                VendorDesignerCapacity(
                    id=f"dc-{key}", user_id=designer.id, service_id=SERVICE_ID,
                    daily_capacity=daily_capacity, auto_assign_enabled=auto_assign,
                    priority=priority, is_primary=is_primary,
                )
            )
        return designer

    def add_rule(
        self, rule_id, priority=0, target=RoutingTarget.VENDOR_ONLY, strategy=None, **kwargs
    ) -> AutomationRule:
        rule = AutomationRule(
            id=rule_id, name=f"Rule {rule_id}", scope=kwargs.pop("scope", RuleScope.GLOBAL),
            priority=priority, routing_target=target, routing_strategy=strategy, **kwargs,
        )
        self.rules.append(rule)
        return rule

    def add_request(self, request_id="req-1", user_id="client-1", **kwargs) -> ServiceRequest:
        req = ServiceRequest(id=request_id, user_id=user_id, service_id=kwargs.pop("service_id", SERVICE_ID), **kwargs)
        self.requests[req.id] = req
        return req

    def add_load(self, vendor=None, designer=None, count=1, at=None):
        """Existing requests already assigned to the vendor/designer at *at*."""
        at = at or self.now - timedelta(hours=1)
        for _ in range(count):
            rid = f"load-{len(self.requests)}"
            self.requests[rid] = ServiceRequest(
                id=rid, user_id="client-old", service_id=SERVICE_ID,
                vendor_assignee_id=vendor.user_id if vendor else None,
                vendor_assigned_at=at if vendor else None,
                assignee_id=designer.id if designer else None,
                assigned_at=at if designer else None,
            )

    def engine(self) -> AutoAssignmentEngine:
        return AutoAssignmentEngine(
            rule_repo=FakeRuleRepo(self),
            capacity_repo=FakeCapacityRepo(self),
            vendor_repo=FakeVendorRepo(self),
            user_repo=FakeUserRepo(self),
            service_repo=FakeServiceRepo(self),
            request_repo=self.request_repo,
            log_repo=self.log_repo,
            rr_state=self.rr_state,
            tz=timezone.utc,
            internal_vendor_profile_id=INTERNAL_VENDOR_PROFILE_ID,
            clock=lambda: self.now,
        )


@pytest.fixture
def world():
    return World()
