"""Port interface for users."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.user import User


class UserRepository(ABC):
    @abstractmethod
    async def get_by_vendor(self, vendor_user_id: str) -> list[User]:
        """Return users linked to the vendor, whatever their role or state."""
        ...
