"""Domain errors.

"No eligible candidate" is a normal outcome and is reported through
AutoAssignmentStatus, never raised. These exceptions cover misconfiguration
and write-time conflicts only.
"""

from __future__ import annotations


class AutomationError(Exception):
    """Base class for auto-assignment errors."""


class UnsupportedCriterionError(AutomationError, ValueError):
    """A rule declares a match criterion the engine cannot evaluate."""

    def __init__(self, key: str, rule_id: str | None = None):
        self.key = key
        self.rule_id = rule_id
        where = f" in rule {rule_id}" if rule_id else ""
        super().__init__(f"Unsupported match criterion {key!r}{where}")


class ServiceRequestNotFoundError(AutomationError):
    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Service request {request_id} not found")


class AssignmentConflictError(AutomationError):
    """The request was assigned or locked by someone else while routing ran."""

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(
            f"Service request {request_id} is no longer unassigned; automation result discarded"
        )
