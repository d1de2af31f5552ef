"""DailyLoadCalculator — how much of today's capacity an owner has used."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Callable

from autoassign.application.ports.service_request_repo import ServiceRequestRepository
from autoassign.domain.policies.daily_load import count_in_window, day_window


class DailyLoadCalculator:
    """Counts same-day assignments per vendor or designer for one service."""

    def __init__(
        self,
        request_repo: ServiceRequestRepository,
        tz: tzinfo,
        clock: Callable[[], datetime],
    ):
        self._requests = request_repo
        self._tz = tz
        self._clock = clock

    async def vendor_load(self, vendor_user_id: str, service_id: str) -> int:
        requests = await self._requests.get_assigned_to_vendor(vendor_user_id, service_id)
        window = day_window(self._clock(), self._tz)
        return count_in_window((r.vendor_assigned_at for r in requests), window)

    async def designer_load(self, designer_id: str, service_id: str) -> int:
        requests = await self._requests.get_assigned_to_designer(designer_id, service_id)
        window = day_window(self._clock(), self._tz)
        return count_in_window((r.assigned_at for r in requests), window)
