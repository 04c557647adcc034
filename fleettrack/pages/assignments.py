# fleettrack/pages/assignments.py
import logging
from dataclasses import dataclass
from typing import Optional

from fleettrack.core.errors import FormError
from fleettrack.core.notify import Notice
from fleettrack.pages.base import PageController
from fleettrack.services.geocode import GeocodeError, Geocoder
from fleettrack.services.resources import Assignment, AssignmentStatus, Driver, GeoPoint, Vehicle

logger = logging.getLogger(__name__)

ALL = "all"


def ref_id(value: Optional[str]):
    """Backend ids are numeric; keep anything else as given."""
    if value is None:
        return None
    return int(value) if str(value).isdigit() else value


@dataclass
class AssignmentForm:
    name: str = ""
    vehicle_id: Optional[str] = None
    driver_id: Optional[str] = None
    start_location: str = ""
    drop_location: str = ""
    start: Optional[GeoPoint] = None
    end: Optional[GeoPoint] = None
    status: AssignmentStatus = AssignmentStatus.IN_PROGRESS

    @classmethod
    def from_assignment(cls, a: Assignment) -> "AssignmentForm":
        return cls(
            name=a.name,
            vehicle_id=a.vehicle.id if a.vehicle else None,
            driver_id=a.driver.id if a.driver else None,
            start_location=a.start_location,
            drop_location=a.drop_location,
            start=a.start,
            end=a.end,
            status=a.status,
        )

    def validate(self) -> None:
        if not self.vehicle_id or not self.driver_id or not self.name.strip():
            raise FormError("Missing fields", "Please select a vehicle, a driver and enter an assignment name.")

    def payload(self) -> dict:
        start = self.start or GeoPoint()
        end = self.end or GeoPoint()
        return {
            "assignmentName": self.name.strip(),
            "vehicle": {"id": ref_id(self.vehicle_id)},
            "driver": {"id": ref_id(self.driver_id)},
            "startLocation": self.start_location,
            "dropLocation": self.drop_location,
            # backend only computes a route distance when both ends are non-zero
            "startLatitude": start.lat,
            "startLongitude": start.lng,
            "endLatitude": end.lat,
            "endLongitude": end.lng,
            "status": self.status.value,
        }


class AssignmentsController(PageController):
    title = "Assignments"

    def __init__(self, *args, geocoder: Optional[Geocoder] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.geocoder = geocoder
        self.assignments: list[Assignment] = []
        self.vehicles: list[Vehicle] = []
        self.drivers: list[Driver] = []
        self.query = ""
        self.status_filter = ALL

    async def fetch(self) -> None:
        ok, rows = await self.call(self.api.list_assignments(), "Could not load assignments")
        if not ok:
            self.assignments = []
            return
        if not self.is_admin:
            rows = [a for a in rows if a.driver and a.driver.id == self.user_id]
        self.assignments = rows

        if self.is_admin:
            ok, vehicles = await self.call(self.api.fleet_vehicles(), "Could not load vehicles")
            self.vehicles = vehicles if ok else []
            ok, drivers = await self.call(self.api.list_drivers(), "Could not load drivers")
            self.drivers = drivers if ok else []

    def visible(self) -> list[Assignment]:
        rows = [a for a in self.assignments if a.matches(self.query)]
        if self.status_filter != ALL:
            rows = [a for a in rows if a.status.value == self.status_filter]
        return rows

    def set_filters(self, query: Optional[str] = None, status: Optional[str] = None) -> None:
        if query is not None:
            self.query = query
        if status is not None:
            self.status_filter = status
        self.changed()

    def counts(self) -> dict[str, int]:
        out = {s.value: 0 for s in AssignmentStatus}
        for a in self.assignments:
            out[a.status.value] += 1
        return out

    # ---------- location picking ----------
    async def locate(self, form: AssignmentForm, which: str, text: str) -> bool:
        """Geocode free text into the form's start or drop point."""
        if self.geocoder is None:
            return False
        try:
            place = await self.geocoder.geocode(text)
        except GeocodeError as ex:
            self.notify(Notice("Location not found", str(ex), "warning"))
            return False
        self._set_point(form, which, GeoPoint(lat=place.lat, lng=place.lng), place.label)
        self.changed()
        return True

    async def pick_on_map(self, form: AssignmentForm, which: str, lat: float, lng: float) -> None:
        label = f"{lat:.5f}, {lng:.5f}"
        if self.geocoder is not None:
            try:
                label = await self.geocoder.reverse(lat, lng)
            except GeocodeError as ex:
                logger.info("Reverse geocode failed, keeping coordinates: %s", ex)
        self._set_point(form, which, GeoPoint(lat=lat, lng=lng), label)
        self.changed()

    @staticmethod
    def _set_point(form: AssignmentForm, which: str, point: GeoPoint, label: str) -> None:
        if which == "start":
            form.start, form.start_location = point, label
        elif which == "drop":
            form.end, form.drop_location = point, label
        else:
            raise ValueError(f"unknown location field: {which}")

    # ---------- CRUD ----------
    async def create(self, form: AssignmentForm) -> bool:
        if not self.require_admin():
            return False
        try:
            form.validate()
        except FormError as ex:
            return self.reject(ex)
        ok, _ = await self.call(self.api.create_assignment(form.payload()), "Could not create assignment")
        if ok:
            self.notify(Notice("Assignment created", form.name.strip(), "success"))
            await self.load()
        return ok

    async def update(self, assignment_id: str, form: AssignmentForm) -> bool:
        if not self.require_admin():
            return False
        try:
            form.validate()
        except FormError as ex:
            return self.reject(ex)
        ok, _ = await self.call(
            self.api.update_assignment(assignment_id, form.payload()), "Could not update assignment"
        )
        if ok:
            self.notify(Notice("Assignment updated", form.name.strip(), "success"))
            await self.load()
        return ok

    async def delete(self, assignment_id: str) -> bool:
        if not self.require_admin():
            return False
        ok, _ = await self.call(self.api.delete_assignment(assignment_id), "Could not delete assignment")
        if ok:
            self.notify(Notice("Assignment deleted", "", "success"))
            await self.load()
        return ok
