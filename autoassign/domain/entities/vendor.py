"""VendorProfile entity — a fulfilling organization and its pricing agreements."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class VendorProfile:
    id: str
    user_id: str
    company_name: str
    pricing_agreements: dict[str, Any] = field(default_factory=dict)
    deleted_at: datetime | None = None

    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def agreement_for(self, service_title: str) -> dict[str, Any] | None:
        agreement = (self.pricing_agreements or {}).get(service_title)
        return agreement if isinstance(agreement, dict) else None
