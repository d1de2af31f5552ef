"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class AutoAssignmentStatus(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    ASSIGNED = "assigned"
    PARTIAL_ASSIGNED = "partial_assigned"
    FAILED_NO_VENDOR = "failed_no_vendor"


class RoutingStrategy(str, Enum):
    LEAST_LOADED = "least_loaded"
    ROUND_ROBIN = "round_robin"
    PRIORITY_FIRST = "priority_first"


class RoutingTarget(str, Enum):
    VENDOR_ONLY = "vendor_only"
    VENDOR_THEN_DESIGNER = "vendor_then_designer"


class RuleScope(str, Enum):
    GLOBAL = "global"
    VENDOR = "vendor"


class UserRole(str, Enum):
    ADMIN = "admin"
    INTERNAL_DESIGNER = "internal_designer"
    VENDOR = "vendor"
    VENDOR_DESIGNER = "vendor_designer"
    CLIENT = "client"


class RequestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DELIVERED = "delivered"
    CHANGE_REQUEST = "change-request"
    CANCELED = "canceled"


class PipelineStep(str, Enum):
    FIND_RULES = "find_rules"
    MATCH_CRITERIA = "match_criteria"
    RULE_MATCHED = "rule_matched"
    VENDOR_SELECTION = "vendor_selection"
    DESIGNER_SELECTION = "designer_selection"


class StepOutcome(str, Enum):
    NO_RULES = "no_rules"
    INVALID_CRITERIA = "invalid_criteria"
    MATCHED = "matched"
    NO_CANDIDATES = "no_candidates"
    NO_CAPACITY = "no_capacity"
    SELECTED = "selected"
