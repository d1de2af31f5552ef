"""Port interface for automation rule lookup."""

from abc import ABC, abstractmethod

from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.value_objects.enums import RuleScope


class AutomationRuleRepository(ABC):
    @abstractmethod
    async def get_by_scope(self, scope: RuleScope) -> list[AutomationRule]:
        """Return all rules of the scope, active or not, in store order."""
        ...
