"""Port interface for vendor and designer capacity records."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.capacity import VendorDesignerCapacity, VendorServiceCapacity


class CapacityRepository(ABC):
    @abstractmethod
    async def get_vendor_capacities_for_service(
        self, service_id: str
    ) -> list[VendorServiceCapacity]:
        ...

    @abstractmethod
    async def get_designer_capacity(
        self, user_id: str, service_id: str
    ) -> VendorDesignerCapacity | None:
        ...
