"""Capacity records — configured daily throughput per owner/service pair."""

from dataclasses import dataclass


@dataclass
class VendorServiceCapacity:
    id: str | None
    vendor_profile_id: str
    service_id: str
    daily_capacity: int = 0
    auto_assign_enabled: bool = False
    priority: int = 0


@dataclass
class VendorDesignerCapacity:
    id: str | None
    user_id: str
    service_id: str
    daily_capacity: int = 0
    auto_assign_enabled: bool = False
    priority: int = 0
    is_primary: bool = False
