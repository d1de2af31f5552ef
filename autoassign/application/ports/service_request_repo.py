"""Port interface for service request persistence."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.service_request import AssignmentUpdate, ServiceRequest


class ServiceRequestRepository(ABC):
    @abstractmethod
    async def get_by_id(self, request_id: str) -> ServiceRequest | None:
        ...

    @abstractmethod
    async def get_assigned_to_vendor(
        self, vendor_user_id: str, service_id: str
    ) -> list[ServiceRequest]:
        """Requests of the service whose vendor assignee is the given vendor user."""
        ...

    @abstractmethod
    async def get_assigned_to_designer(
        self, designer_id: str, service_id: str
    ) -> list[ServiceRequest]:
        """Requests of the service whose designer assignee is the given user."""
        ...

    @abstractmethod
    async def get_unassigned(self) -> list[ServiceRequest]:
        """Requests that are neither locked nor assigned to a vendor or designer."""
        ...

    @abstractmethod
    async def update_assignment(
        self,
        request_id: str,
        changes: AssignmentUpdate,
        require_unassigned: bool = False,
    ) -> ServiceRequest | None:
        """Write the automation fields and return the updated request.

        With require_unassigned=True the write must only happen while the
        request is still unlocked and has no assignee (a single conditional
        update). Returns None when no row was updated.
        """
        ...
