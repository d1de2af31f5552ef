"""AutomationRule entity — a prioritized routing policy configured by admins."""

from dataclasses import dataclass, field
from typing import Any

from autoassign.domain.value_objects.enums import RoutingStrategy, RoutingTarget, RuleScope


@dataclass
class AutomationRule:
    id: str
    name: str
    scope: RuleScope = RuleScope.GLOBAL
    is_active: bool = True
    priority: int = 0
    service_ids: list[str] | None = None
    match_criteria: dict[str, Any] | None = None
    routing_target: RoutingTarget = RoutingTarget.VENDOR_ONLY
    routing_strategy: str | None = None
    allowed_vendor_ids: list[str] = field(default_factory=list)
    excluded_vendor_ids: list[str] = field(default_factory=list)
    owner_vendor_id: str | None = None

    def applies_to_service(self, service_id: str) -> bool:
        return not self.service_ids or service_id in self.service_ids

    def requires_designer(self) -> bool:
        return self.routing_target == RoutingTarget.VENDOR_THEN_DESIGNER

    @property
    def strategy_name(self) -> str:
        """Strategy used by this rule; rules without one fall back to least-loaded."""
        return self.routing_strategy or RoutingStrategy.LEAST_LOADED.value
