"""User entity — only the fields the designer tier needs."""

from dataclasses import dataclass

from autoassign.domain.value_objects.enums import UserRole


@dataclass
class User:
    id: str
    username: str
    role: str = UserRole.CLIENT.value
    is_active: bool = True
    vendor_id: str | None = None

    def is_designer_of(self, vendor_user_id: str) -> bool:
        return (
            self.role == UserRole.VENDOR_DESIGNER.value
            and self.vendor_id == vendor_user_id
            and self.is_active
        )
