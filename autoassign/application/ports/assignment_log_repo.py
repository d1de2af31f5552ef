"""Port interface for the append-only automation decision log."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.assignment_log import AssignmentLogEntry


class AssignmentLogRepository(ABC):
    @abstractmethod
    async def add_many(self, entries: list[AssignmentLogEntry]) -> None:
        """Append the entries, preserving their order."""
        ...

    @abstractmethod
    async def get_by_request(self, request_id: str) -> list[AssignmentLogEntry]:
        ...
