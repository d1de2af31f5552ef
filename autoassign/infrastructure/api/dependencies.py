"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from autoassign.adapters.persistence.database import get_session
from autoassign.adapters.persistence.repositories import (
    SqlAssignmentLogRepository,
    SqlAutomationRuleRepository,
    SqlCapacityRepository,
    SqlServiceRepository,
    SqlServiceRequestRepository,
    SqlUserRepository,
    SqlVendorRepository,
)
from autoassign.application.use_cases.auto_assign import (
    AutoAssignmentEngine,
    BatchAutoAssignUseCase,
)
from autoassign.config import settings
from autoassign.domain.policies.round_robin import RoundRobinState

# Process-wide: round-robin positions must survive across requests/sessions
_round_robin_state = RoundRobinState()
_business_tz = ZoneInfo(settings.business_timezone)


def build_engine(session: AsyncSession) -> AutoAssignmentEngine:
    return AutoAssignmentEngine(
        rule_repo=SqlAutomationRuleRepository(session),
        capacity_repo=SqlCapacityRepository(session),
        vendor_repo=SqlVendorRepository(session),
        user_repo=SqlUserRepository(session),
        service_repo=SqlServiceRepository(session),
        request_repo=SqlServiceRequestRepository(session),
        log_repo=SqlAssignmentLogRepository(session),
        rr_state=_round_robin_state,
        tz=_business_tz,
        internal_vendor_profile_id=settings.internal_vendor_profile_id,
    )


def get_request_repo(
    session: AsyncSession = Depends(get_session),
) -> SqlServiceRequestRepository:
    return SqlServiceRequestRepository(session)


def get_log_repo(session: AsyncSession = Depends(get_session)) -> SqlAssignmentLogRepository:
    return SqlAssignmentLogRepository(session)


def get_automation_engine(
    session: AsyncSession = Depends(get_session),
) -> AutoAssignmentEngine:
    return build_engine(session)


def get_batch_auto_assign_uc(
    session: AsyncSession = Depends(get_session),
) -> BatchAutoAssignUseCase:
    return BatchAutoAssignUseCase(
        engine=build_engine(session),
        request_repo=SqlServiceRequestRepository(session),
        item_scope=session.begin_nested,
    )
