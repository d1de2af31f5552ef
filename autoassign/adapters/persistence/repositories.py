"""SQLAlchemy repository implementations."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.models import (
    AutomationAssignmentLogModel,
    AutomationRuleModel,
    ServiceModel,
    ServiceRequestModel,
    UserModel,
    VendorDesignerCapacityModel,
    VendorProfileModel,
    VendorServiceCapacityModel,
)
from autoassign.application.ports.assignment_log_repo import AssignmentLogRepository
from autoassign.application.ports.automation_rule_repo import AutomationRuleRepository
from autoassign.application.ports.capacity_repo import CapacityRepository
from autoassign.application.ports.service_repo import ServiceRepository
from autoassign.application.ports.service_request_repo import ServiceRequestRepository
from autoassign.application.ports.user_repo import UserRepository
from autoassign.application.ports.vendor_repo import VendorRepository
from autoassign.domain.entities.assignment_log import AssignmentLogEntry, CapacitySnapshot
from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.entities.capacity import VendorDesignerCapacity, VendorServiceCapacity
from autoassign.domain.entities.service import Service
from autoassign.domain.entities.service_request import AssignmentUpdate, ServiceRequest
from autoassign.domain.entities.user import User
from autoassign.domain.entities.vendor import VendorProfile
from autoassign.domain.value_objects.enums import (
    AutoAssignmentStatus,
    PipelineStep,
    RoutingTarget,
    RuleScope,
    StepOutcome,
)

# ─── Mappers ─────────────────────────────────────────────────────────


def _rule_to_domain(m: AutomationRuleModel) -> AutomationRule:
    return AutomationRule(
        id=m.id,
        name=m.name,
        scope=RuleScope(m.scope),
        is_active=m.is_active,
        priority=m.priority,
        service_ids=list(m.service_ids) if m.service_ids is not None else None,
        match_criteria=dict(m.match_criteria) if m.match_criteria else None,
        routing_target=RoutingTarget(m.routing_target),
        routing_strategy=m.routing_strategy,
        allowed_vendor_ids=list(m.allowed_vendor_ids or []),
        excluded_vendor_ids=list(m.excluded_vendor_ids or []),
        owner_vendor_id=m.owner_vendor_id,
    )


def _vendor_capacity_to_domain(m: VendorServiceCapacityModel) -> VendorServiceCapacity:
    return VendorServiceCapacity(
        id=m.id,
        vendor_profile_id=m.vendor_profile_id,
        service_id=m.service_id,
        daily_capacity=m.daily_capacity,
        auto_assign_enabled=m.auto_assign_enabled,
        priority=m.priority,
    )


def _designer_capacity_to_domain(m: VendorDesignerCapacityModel) -> VendorDesignerCapacity:
    return VendorDesignerCapacity(
        id=m.id,
        user_id=m.user_id,
        service_id=m.service_id,
        daily_capacity=m.daily_capacity,
        auto_assign_enabled=m.auto_assign_enabled,
        priority=m.priority,
        is_primary=m.is_primary,
    )


def _vendor_to_domain(m: VendorProfileModel) -> VendorProfile:
    return VendorProfile(
        id=m.id,
        user_id=m.user_id,
        company_name=m.company_name,
        pricing_agreements=dict(m.pricing_agreements or {}),
        deleted_at=m.deleted_at,
    )


def _user_to_domain(m: UserModel) -> User:
    return User(
        id=m.id,
        username=m.username,
        role=m.role,
        is_active=m.is_active,
        vendor_id=m.vendor_id,
    )


def _request_to_domain(m: ServiceRequestModel) -> ServiceRequest:
    return ServiceRequest(
        id=m.id,
        user_id=m.user_id,
        service_id=m.service_id,
        vendor_assignee_id=m.vendor_assignee_id,
        vendor_assigned_at=m.vendor_assigned_at,
        assignee_id=m.assignee_id,
        assigned_at=m.assigned_at,
        status=m.status,
        locked_assignment=m.locked_assignment,
        auto_assignment_status=AutoAssignmentStatus(m.auto_assignment_status),
        last_automation_run_at=m.last_automation_run_at,
        last_automation_note=m.last_automation_note,
    )


def _log_to_domain(m: AutomationAssignmentLogModel) -> AssignmentLogEntry:
    snapshot = None
    if m.capacity_snapshot is not None:
        snapshot = tuple(CapacitySnapshot(**s) for s in m.capacity_snapshot)
    return AssignmentLogEntry(
        request_id=m.request_id,
        request_type=m.request_type,
        rule_id=m.rule_id,
        step=PipelineStep(m.step),
        result=StepOutcome(m.result),
        reason=m.reason,
        chosen_id=m.chosen_id,
        candidates_considered=tuple(m.candidates_considered or ()),
        capacity_snapshot=snapshot,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlAutomationRuleRepository(AutomationRuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_scope(self, scope: RuleScope) -> list[AutomationRule]:
        result = await self._s.execute(
            select(AutomationRuleModel).where(AutomationRuleModel.scope == scope.value)
        )
        return [_rule_to_domain(m) for m in result.scalars()]


class SqlCapacityRepository(CapacityRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_vendor_capacities_for_service(
        self, service_id: str
    ) -> list[VendorServiceCapacity]:
        result = await self._s.execute(
            select(VendorServiceCapacityModel)
            .where(VendorServiceCapacityModel.service_id == service_id)
            .order_by(VendorServiceCapacityModel.id)
        )
        return [_vendor_capacity_to_domain(m) for m in result.scalars()]

    async def get_designer_capacity(
        self, user_id: str, service_id: str
    ) -> VendorDesignerCapacity | None:
        result = await self._s.execute(
            select(VendorDesignerCapacityModel).where(
                VendorDesignerCapacityModel.user_id == user_id,
                VendorDesignerCapacityModel.service_id == service_id,
            )
        )
        m = result.scalar_one_or_none()
        return _designer_capacity_to_domain(m) if m else None


class SqlVendorRepository(VendorRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_all(self) -> list[VendorProfile]:
        result = await self._s.execute(select(VendorProfileModel).order_by(VendorProfileModel.id))
        return [_vendor_to_domain(m) for m in result.scalars()]


class SqlUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_vendor(self, vendor_user_id: str) -> list[User]:
        result = await self._s.execute(
            select(UserModel).where(UserModel.vendor_id == vendor_user_id).order_by(UserModel.id)
        )
        return [_user_to_domain(m) for m in result.scalars()]


class SqlServiceRepository(ServiceRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, service_id: str) -> Service | None:
        m = await self._s.get(ServiceModel, service_id)
        return Service(id=m.id, title=m.title) if m else None


class SqlServiceRequestRepository(ServiceRequestRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, request_id: str) -> ServiceRequest | None:
        m = await self._s.get(ServiceRequestModel, request_id, populate_existing=True)
        return _request_to_domain(m) if m else None

    async def get_assigned_to_vendor(
        self, vendor_user_id: str, service_id: str
    ) -> list[ServiceRequest]:
        result = await self._s.execute(
            select(ServiceRequestModel).where(
                ServiceRequestModel.vendor_assignee_id == vendor_user_id,
                ServiceRequestModel.service_id == service_id,
            )
        )
        return [_request_to_domain(m) for m in result.scalars()]

    async def get_assigned_to_designer(
        self, designer_id: str, service_id: str
    ) -> list[ServiceRequest]:
        result = await self._s.execute(
            select(ServiceRequestModel).where(
                ServiceRequestModel.assignee_id == designer_id,
                ServiceRequestModel.service_id == service_id,
            )
        )
        return [_request_to_domain(m) for m in result.scalars()]

    async def get_unassigned(self) -> list[ServiceRequest]:
        result = await self._s.execute(
            select(ServiceRequestModel)
            .where(
                ServiceRequestModel.locked_assignment.is_(False),
                ServiceRequestModel.vendor_assignee_id.is_(None),
                ServiceRequestModel.assignee_id.is_(None),
            )
            .order_by(ServiceRequestModel.created_at, ServiceRequestModel.id)
        )
        return [_request_to_domain(m) for m in result.scalars()]

    async def update_assignment(
        self,
        request_id: str,
        changes: AssignmentUpdate,
        require_unassigned: bool = False,
    ) -> ServiceRequest | None:
        values = {
            "auto_assignment_status": changes.auto_assignment_status.value,
            "last_automation_run_at": changes.last_automation_run_at,
            "last_automation_note": changes.last_automation_note,
        }
        if changes.vendor_assignee_id is not None:
            values["vendor_assignee_id"] = changes.vendor_assignee_id
            values["vendor_assigned_at"] = changes.vendor_assigned_at
        if changes.assignee_id is not None:
            values["assignee_id"] = changes.assignee_id
            values["assigned_at"] = changes.assigned_at
        if changes.status is not None:
            values["status"] = changes.status

        stmt = update(ServiceRequestModel).where(ServiceRequestModel.id == request_id)
        if require_unassigned:
            # Compare-and-set: only an untouched request may receive an assignee
            stmt = stmt.where(
                ServiceRequestModel.locked_assignment.is_(False),
                ServiceRequestModel.vendor_assignee_id.is_(None),
                ServiceRequestModel.assignee_id.is_(None),
            )

        result = await self._s.execute(
            stmt.values(**values).execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            return None
        await self._s.flush()
        return await self.get_by_id(request_id)


class SqlAssignmentLogRepository(AssignmentLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add_many(self, entries: list[AssignmentLogEntry]) -> None:
        for entry in entries:
            self._s.add(
                AutomationAssignmentLogModel(
                    request_id=entry.request_id,
                    request_type=entry.request_type,
                    rule_id=entry.rule_id,
                    step=entry.step.value,
                    result=entry.result.value,
                    reason=entry.reason,
                    chosen_id=entry.chosen_id,
                    candidates_considered=list(entry.candidates_considered),
                    capacity_snapshot=(
                        [s.to_dict() for s in entry.capacity_snapshot]
                        if entry.capacity_snapshot is not None
                        else None
                    ),
                )
            )
            # Flush per entry so autoincrement ids follow the pipeline order
            await self._s.flush()

    async def get_by_request(self, request_id: str) -> list[AssignmentLogEntry]:
        result = await self._s.execute(
            select(AutomationAssignmentLogModel)
            .where(AutomationAssignmentLogModel.request_id == request_id)
            .order_by(AutomationAssignmentLogModel.id)
        )
        return [_log_to_domain(m) for m in result.scalars()]
