"""VendorEligibilityPolicy — rule allow/deny lists and pricing agreement checks."""

from __future__ import annotations

from typing import Any

from autoassign.domain.entities.automation_rule import AutomationRule
from autoassign.domain.entities.vendor import VendorProfile


def _is_positive(value: Any) -> bool:
    try:
        return float(str(value)) > 0
    except (TypeError, ValueError):
        return False


def _tier_prices(tiers: Any) -> list:
    if isinstance(tiers, dict):
        return list(tiers.values())
    if isinstance(tiers, (list, tuple)):
        return list(tiers)
    return []


def has_valid_service_cost(
    vendor: VendorProfile,
    service_title: str,
    internal_vendor_profile_id: str,
) -> bool:
    """Check the vendor has agreed a positive price for the service.

    Agreements are keyed by service title and take one of three shapes:
      {"basePrice": 12.5}
      {"complexity": {"Basic": 5, "Advanced": 10}}
      {"quantity": {"1-50": 3, "51+": 2}}

    The internal fulfillment vendor is always priced.
    """
    if vendor.id == internal_vendor_profile_id:
        return True

    agreement = vendor.agreement_for(service_title)
    if not agreement:
        return False

    if "basePrice" in agreement:
        return _is_positive(agreement["basePrice"])
    for tiered in ("complexity", "quantity"):
        tiers = agreement.get(tiered)
        if tiers:
            return any(_is_positive(v) for v in _tier_prices(tiers))
    return False


def passes_vendor_lists(vendor_user_id: str, rule: AutomationRule) -> bool:
    """Apply the rule's allow-list, then its deny-list (both by vendor user id)."""
    if rule.allowed_vendor_ids and vendor_user_id not in rule.allowed_vendor_ids:
        return False
    if rule.excluded_vendor_ids and vendor_user_id in rule.excluded_vendor_ids:
        return False
    return True


def is_vendor_eligible(
    vendor: VendorProfile,
    rule: AutomationRule,
    service_title: str | None,
    internal_vendor_profile_id: str,
) -> bool:
    """Vendor passes the rule's lists and is priced for the service.

    When the service title is unknown no agreement can be checked, so only
    the internal vendor stays eligible.
    """
    if vendor.is_deleted():
        return False
    if not passes_vendor_lists(vendor.user_id, rule):
        return False
    if service_title is None:
        return vendor.id == internal_vendor_profile_id
    return has_valid_service_cost(vendor, service_title, internal_vendor_profile_id)
