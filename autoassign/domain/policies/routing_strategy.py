"""RoutingStrategyPolicy — pick exactly one candidate from a non-empty list."""

from __future__ import annotations

from typing import Sequence, TypeVar

from autoassign.domain.entities.candidate import Candidate, DesignerCandidate
from autoassign.domain.policies.round_robin import RoundRobinState
from autoassign.domain.value_objects.enums import RoutingStrategy

C = TypeVar("C", bound=Candidate)


def _require_candidates(candidates: Sequence[Candidate]) -> None:
    if not candidates:
        raise ValueError("Cannot pick from an empty candidate list")


def pick_least_loaded(candidates: Sequence[C]) -> C:
    """Smallest current load; the first one encountered wins ties."""
    _require_candidates(candidates)
    return min(candidates, key=lambda c: c.current_load)


def pick_priority_first(candidates: Sequence[C]) -> C:
    """Highest (is_primary, priority); the first one encountered wins ties.

    Vendor candidates are never primary, so this reduces to the highest
    capacity priority for the vendor tier.
    """
    _require_candidates(candidates)
    return max(candidates, key=lambda c: (c.is_primary, c.priority))


def pick_round_robin(candidates: Sequence[C], state: RoundRobinState, scope_key: str) -> C:
    _require_candidates(candidates)
    return candidates[state.next_index(scope_key, len(candidates))]


def parse_strategy(name: str | None) -> RoutingStrategy | None:
    try:
        return RoutingStrategy(name)
    except ValueError:
        return None


def resolve_candidate(
    candidates: Sequence[C],
    strategy: str | None,
    scope_key: str,
    state: RoundRobinState,
) -> C:
    """Apply the named strategy to the candidates in their current order.

    Unknown or missing strategy names fall back to the first candidate.

    Raises:
        ValueError: if candidates is empty.
    """
    _require_candidates(candidates)
    parsed = parse_strategy(strategy)
    if parsed == RoutingStrategy.LEAST_LOADED:
        return pick_least_loaded(candidates)
    if parsed == RoutingStrategy.ROUND_ROBIN:
        return pick_round_robin(candidates, state, scope_key)
    if parsed == RoutingStrategy.PRIORITY_FIRST:
        return pick_priority_first(candidates)
    return candidates[0]


def order_designers(candidates: Sequence[DesignerCandidate]) -> list[DesignerCandidate]:
    """Primary designers first, then by capacity priority (descending).

    The sort is stable, so designers with equal rank keep their store order.
    """
    return sorted(candidates, key=lambda c: (not c.is_primary, -c.priority))


def preferred_designers(candidates: Sequence[DesignerCandidate]) -> list[DesignerCandidate]:
    """The ordered pool a strategy may choose from.

    When any primary designer has capacity, only primary designers are
    offered, so no strategy can pass over them for a non-primary designer.
    """
    ordered = order_designers(candidates)
    primaries = [c for c in ordered if c.is_primary]
    return primaries or ordered
