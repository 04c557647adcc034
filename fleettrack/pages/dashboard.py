# fleettrack/pages/dashboard.py
from typing import Optional

from fleettrack.pages.base import PageController
from fleettrack.services.resources import DashboardSummary


class DashboardController(PageController):
    title = "Dashboard"

    summary: Optional[DashboardSummary] = None

    async def fetch(self) -> None:
        ok, summary = await self.call(self.api.dashboard(), "Could not load dashboard")
        self.summary = summary if ok else DashboardSummary()

    def stats(self) -> list[tuple[str, int]]:
        s = self.summary or DashboardSummary()
        return [
            ("Active Vehicles", s.active_vehicles),
            ("Active Drivers", s.active_drivers),
            ("Assignments In Progress", s.in_progress_assignments),
            ("Pending Services", s.pending_services),
        ]
