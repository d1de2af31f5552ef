"""ServiceRequest entity — a client's request for a service awaiting fulfillment."""

from dataclasses import dataclass
from datetime import datetime

from autoassign.domain.value_objects.enums import AutoAssignmentStatus, RequestStatus


@dataclass
class ServiceRequest:
    id: str
    user_id: str
    service_id: str
    vendor_assignee_id: str | None = None
    vendor_assigned_at: datetime | None = None
    assignee_id: str | None = None
    assigned_at: datetime | None = None
    status: str = RequestStatus.PENDING.value
    locked_assignment: bool = False
    auto_assignment_status: AutoAssignmentStatus = AutoAssignmentStatus.NOT_ATTEMPTED
    last_automation_run_at: datetime | None = None
    last_automation_note: str | None = None

    def has_assignment(self) -> bool:
        return bool(self.vendor_assignee_id or self.assignee_id)

    def is_open_for_automation(self) -> bool:
        return not self.locked_assignment and not self.has_assignment()


@dataclass(frozen=True)
class AssignmentUpdate:
    """Fields written back to a request after one automation run."""

    auto_assignment_status: AutoAssignmentStatus
    last_automation_run_at: datetime
    last_automation_note: str
    vendor_assignee_id: str | None = None
    vendor_assigned_at: datetime | None = None
    assignee_id: str | None = None
    assigned_at: datetime | None = None
    status: str | None = None

    @property
    def assigns(self) -> bool:
        return self.vendor_assignee_id is not None or self.assignee_id is not None
