"""Assignment log entry — one immutable record per automation pipeline step."""

from dataclasses import dataclass

from autoassign.domain.value_objects.enums import PipelineStep, StepOutcome

REQUEST_TYPE_SERVICE = "service"


@dataclass(frozen=True)
class CapacitySnapshot:
    """Capacity figures of one surviving candidate at decision time."""

    entity_id: str
    daily_capacity: int
    current_load: int
    available_capacity: int

    def to_dict(self) -> dict:
        return {
            "entity_id": self.entity_id,
            "daily_capacity": self.daily_capacity,
            "current_load": self.current_load,
            "available_capacity": self.available_capacity,
        }


@dataclass(frozen=True)
class AssignmentLogEntry:
    request_id: str
    step: PipelineStep
    result: StepOutcome
    reason: str
    request_type: str = REQUEST_TYPE_SERVICE
    rule_id: str | None = None
    chosen_id: str | None = None
    candidates_considered: tuple[str, ...] = ()
    capacity_snapshot: tuple[CapacitySnapshot, ...] | None = None
