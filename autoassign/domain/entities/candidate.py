"""Candidates — owners that are eligible and under capacity for one tier."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from autoassign.domain.entities.assignment_log import CapacitySnapshot
from autoassign.domain.entities.capacity import VendorDesignerCapacity, VendorServiceCapacity
from autoassign.domain.entities.user import User
from autoassign.domain.entities.vendor import VendorProfile


@dataclass
class Candidate(ABC):
    capacity: VendorServiceCapacity | VendorDesignerCapacity
    current_load: int

    @property
    def available_capacity(self) -> int:
        return self.capacity.daily_capacity - self.current_load

    @property
    def priority(self) -> int:
        return self.capacity.priority or 0

    @property
    def is_primary(self) -> bool:
        return False

    @property
    @abstractmethod
    def assignee_id(self) -> str:
        """Id written onto the service request when this candidate is chosen."""
        ...

    @property
    @abstractmethod
    def snapshot_id(self) -> str:
        ...

    def snapshot(self) -> CapacitySnapshot:
        return CapacitySnapshot(
            entity_id=self.snapshot_id,
            daily_capacity=self.capacity.daily_capacity,
            current_load=self.current_load,
            available_capacity=self.available_capacity,
        )


@dataclass
class VendorCandidate(Candidate):
    vendor: VendorProfile

    @property
    def assignee_id(self) -> str:
        return self.vendor.user_id

    @property
    def snapshot_id(self) -> str:
        return self.vendor.id


@dataclass
class DesignerCandidate(Candidate):
    designer: User

    @property
    def is_primary(self) -> bool:
        return bool(getattr(self.capacity, "is_primary", False))

    @property
    def assignee_id(self) -> str:
        return self.designer.id

    @property
    def snapshot_id(self) -> str:
        return self.designer.id
