"""Port interface for vendor profiles."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.vendor import VendorProfile


class VendorRepository(ABC):
    @abstractmethod
    async def get_all(self) -> list[VendorProfile]:
        """Return every vendor profile, including soft-deleted ones."""
        ...
