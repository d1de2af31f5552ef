"""DecisionLog — ordered audit trail of one automation run."""

from __future__ import annotations

import logging
from typing import Sequence

from autoassign.domain.entities.assignment_log import AssignmentLogEntry, CapacitySnapshot
from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.value_objects.enums import PipelineStep, StepOutcome

logger = logging.getLogger(__name__)


class DecisionLog:
    """Collects one immutable AssignmentLogEntry per pipeline step.

    Entries are only appended; each is mirrored to the module logger so the
    decision can be followed in the service logs before it is persisted.
    """

    def __init__(self, request_id: str):
        self._request_id = request_id
        self._entries: list[AssignmentLogEntry] = []

    @property
    def entries(self) -> tuple[AssignmentLogEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self,
        step: PipelineStep,
        result: StepOutcome,
        reason: str,
        rule: AutomationRule | None = None,
        chosen_id: str | None = None,
        candidates: Sequence[str] = (),
        snapshot: Sequence[CapacitySnapshot] | None = None,
    ) -> AssignmentLogEntry:
        entry = AssignmentLogEntry(
            request_id=self._request_id,
            rule_id=rule.id if rule else None,
            step=step,
            result=result,
            reason=reason,
            chosen_id=chosen_id,
            candidates_considered=tuple(candidates),
            capacity_snapshot=tuple(snapshot) if snapshot is not None else None,
        )
        self._entries.append(entry)
        logger.info(
            "Request %s: %s/%s rule=%s chosen=%s: %s",
            self._request_id, step.value, result.value,
            entry.rule_id, chosen_id, reason,
        )
        return entry

    def no_rules(self) -> AssignmentLogEntry:
        return self.record(
            PipelineStep.FIND_RULES,
            StepOutcome.NO_RULES,
            "No active global automation rules found for this service",
        )

    def invalid_criteria(self, rule: AutomationRule, error: Exception) -> AssignmentLogEntry:
        return self.record(
            PipelineStep.MATCH_CRITERIA,
            StepOutcome.INVALID_CRITERIA,
            f'Rule "{rule.name}" skipped: {error}',
            rule=rule,
        )

    def rule_matched(self, rule: AutomationRule) -> AssignmentLogEntry:
        return self.record(
            PipelineStep.RULE_MATCHED,
            StepOutcome.MATCHED,
            f'Rule "{rule.name}" matched request criteria',
            rule=rule,
        )
