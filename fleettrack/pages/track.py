# fleettrack/pages/track.py
"""Live vehicle map: all positions, search, and follow-one-vehicle mode."""
from dataclasses import dataclass
from typing import Optional

from fleettrack.core.notify import Notice
from fleettrack.pages.base import PageController
from fleettrack.services.resources import Driver, SearchResults, Vehicle

TYPE_COLORS = {
    "BUS": "#22c55e",
    "TRUCK": "#3b82f6",
    "CAR": "#f59e0b",
    "CAB": "#f59e0b",
}
DEFAULT_COLOR = "#6b7280"
TRACKED_RING = "#22c55e"
UNTRACKED_RING = "#ef4444"
FOLLOW_RING = "#22d3ee"


def marker_color(vehicle_type: str) -> str:
    return TYPE_COLORS.get((vehicle_type or "").upper(), DEFAULT_COLOR)


@dataclass(frozen=True)
class MapMarker:
    vehicle_id: Optional[str]
    lat: float
    lng: float
    color: str
    ring: str
    label: str


class TrackController(PageController):
    title = "Track"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.vehicles: list[Vehicle] = []
        self.query = ""
        self.results: Optional[SearchResults] = None
        self.selected: Optional[Vehicle] = None
        self.tracking = False
        self.view_all = False

    async def fetch(self) -> None:
        ok, vehicles = await self.call(self.api.tracked_vehicles(), "Could not load vehicles")
        self.vehicles = vehicles if ok else []

    # ---------- search ----------
    async def search(self, query: str) -> None:
        self.query = (query or "").strip()
        if not self.query:
            self.results = None
            self.changed()
            return
        ok, results = await self.call(self.api.search_tracking(self.query), "Search failed")
        if ok:
            self.results = results
            if results.empty:
                self.notify(Notice("No matches", f"Nothing found for '{self.query}'.", "info"))
        self.changed()

    def clear_search(self) -> None:
        self.query = ""
        self.results = None
        self.selected = None
        self.tracking = False
        self.view_all = False
        self.changed()

    # ---------- selection ----------
    def select_vehicle(self, vehicle: Vehicle) -> None:
        self.selected = vehicle
        self.results = None
        self.view_all = False
        self.changed()

    async def select_driver(self, driver: Driver) -> None:
        if not driver.assigned_vehicle_id:
            self.notify(Notice("No vehicle", f"{driver.name or driver.username} has no assigned vehicle.", "info"))
            return
        ok, vehicle = await self.call(self.api.tracked_vehicle(driver.assigned_vehicle_id), "Could not load vehicle")
        if ok:
            self.select_vehicle(vehicle)

    def start_tracking(self) -> None:
        if self.selected is None:
            return
        self.tracking = True
        self.changed()

    def end_tracking(self) -> None:
        self.tracking = False
        self.selected = None
        self.changed()

    def toggle_view_all(self) -> None:
        self.view_all = not self.view_all
        self.results = None
        self.changed()

    async def refresh_selected(self) -> None:
        """Re-read the followed vehicle's position."""
        if not (self.tracking and self.selected and self.selected.id):
            return
        ok, vehicle = await self.call(self.api.tracked_vehicle(self.selected.id), "Could not refresh position")
        if ok and self.tracking:
            self.selected = vehicle
            self.changed()

    # ---------- map ----------
    def markers(self) -> list[MapMarker]:
        if self.selected is not None and not self.view_all:
            shown = [self.selected]
        else:
            shown = self.vehicles
        out = []
        for v in shown:
            if v.location is None or not v.location.valid:
                continue
            following = self.tracking and self.selected is not None and v.id == self.selected.id
            ring = FOLLOW_RING if following else (UNTRACKED_RING if v.location_status == "UNTRACKED" else TRACKED_RING)
            out.append(MapMarker(v.id, v.location.lat, v.location.lng, marker_color(v.type), ring, v.label()))
        return out

    def focus(self) -> Optional[tuple[float, float]]:
        if self.selected and self.selected.location and self.selected.location.valid:
            return self.selected.location.lat, self.selected.location.lng
        return None
