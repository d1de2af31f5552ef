"""Port interface for the service catalog."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.service import Service


class ServiceRepository(ABC):
    @abstractmethod
    async def get_by_id(self, service_id: str) -> Service | None:
        ...
