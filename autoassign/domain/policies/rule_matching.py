"""RuleMatchingPolicy — which automation rules apply to a request, and in what order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.entities.service_request import ServiceRequest
from autoassign.domain.errors import UnsupportedCriterionError

# Criterion key as stored on the rule → ServiceRequest attribute it constrains
CRITERION_FIELDS: dict[str, str] = {
    "clientId": "user_id",
}


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def matches(self, request: ServiceRequest) -> bool:
        return getattr(request, self.field) == self.value


@dataclass(frozen=True)
class In:
    field: str
    values: frozenset

    def matches(self, request: ServiceRequest) -> bool:
        return getattr(request, self.field) in self.values


Criterion = Equals | In


def parse_match_criteria(
    criteria: Mapping[str, Any] | None,
    rule_id: str | None = None,
) -> list[Criterion]:
    """Turn a rule's stored criteria mapping into predicates.

    A scalar value becomes Equals, a list/tuple/set becomes In.
    Empty values (None, "", []) place no constraint.

    Raises:
        UnsupportedCriterionError: for any key outside CRITERION_FIELDS.
    """
    if not criteria:
        return []

    parsed: list[Criterion] = []
    for key, value in criteria.items():
        field = CRITERION_FIELDS.get(key)
        if field is None:
            raise UnsupportedCriterionError(key, rule_id)
        if value is None or value == "" or value == []:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            parsed.append(In(field=field, values=frozenset(value)))
        else:
            parsed.append(Equals(field=field, value=value))
    return parsed


def rule_matches(request: ServiceRequest, rule: AutomationRule) -> bool:
    """True when every criterion of the rule holds for the request.

    Rules without criteria match every request.
    """
    criteria = parse_match_criteria(rule.match_criteria, rule.id)
    return all(c.matches(request) for c in criteria)


def select_applicable_rules(
    rules: list[AutomationRule],
    service_id: str,
) -> list[AutomationRule]:
    """Active rules for the service, highest priority first.

    Equal priorities are ordered by rule id so the evaluation order does not
    depend on the store's return order.
    """
    applicable = [r for r in rules if r.is_active and r.applies_to_service(service_id)]
    return sorted(applicable, key=lambda r: (-(r.priority or 0), r.id))
