# fleettrack/pages/profiles.py
"""Admin directory: users, drivers and vehicles, with create/update/delete."""
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fleettrack.core.errors import FormError
from fleettrack.core.notify import Notice
from fleettrack.core.policy import Role
from fleettrack.pages.assignments import ALL
from fleettrack.pages.base import PageController
from fleettrack.services.resources import Driver, User, Vehicle

TABS = ("users", "drivers", "vehicles")
VEHICLE_TYPES = ("BUS", "TRUCK", "CAR", "CAB")
VEHICLE_STATUSES = ("ACTIVE", "INACTIVE", "MAINTENANCE")
DRIVER_STATUSES = ("ACTIVE", "ON_TRIP", "OFF_DUTY", "INACTIVE")


@dataclass
class UserForm:
    username: str = ""
    password: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    role: Role = Role.DRIVER

    def validate(self) -> None:
        if not self.username.strip():
            raise FormError("Validation Error", "Username is required.")
        if not self.password.strip():
            raise FormError("Validation Error", "Password is required.")

    def fields(self) -> dict:
        # multipart form fields of POST /v1/profiles/create
        return {
            "username": self.username.strip(),
            "password": self.password,
            "name": self.name.strip() or "Default User",
            "mailId": self.email.strip() or "-",
            "phoneNumber": self.phone.strip() or "-",
            "role": self.role.value,
        }


@dataclass
class VehicleForm:
    name: str = ""
    registration_number: str = ""
    model: str = ""
    type: str = "CAR"
    capacity: int = 4
    status: str = "ACTIVE"
    last_service_date: Optional[date] = None
    next_service_date: Optional[date] = None

    def validate(self) -> None:
        if not self.name.strip():
            raise FormError("Validation Error", "Vehicle name is required.")
        if not self.registration_number.strip():
            raise FormError("Validation Error", "Registration number is required.")

    def payload(self) -> dict:
        # the backend reads every field as a string
        out = {
            "vehicleName": self.name.strip(),
            "registrationNumber": self.registration_number.strip(),
            "model": self.model.strip(),
            "type": self.type.upper(),
            "capacity": str(self.capacity),
            "status": self.status.upper(),
        }
        if self.last_service_date:
            out["lastServiceDate"] = self.last_service_date.isoformat()
        if self.next_service_date:
            out["nextServiceDate"] = self.next_service_date.isoformat()
        return out


def _hit(query: str, *fields: str) -> bool:
    return not query or any(query in (f or "").lower() for f in fields)


class ProfilesController(PageController):
    title = "Profiles"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tab = "users"
        self.users: list[User] = []
        self.drivers: list[Driver] = []
        self.vehicles: list[Vehicle] = []
        self.query = ""
        self.role_filter = ALL
        self.status_filter = ALL
        self.type_filter = ALL

    async def fetch(self) -> None:
        ok, users = await self.call(self.api.list_users(), "Could not load users")
        self.users = users if ok else []
        ok, drivers = await self.call(self.api.list_drivers(), "Could not load drivers")
        self.drivers = drivers if ok else []
        ok, vehicles = await self.call(self.api.list_vehicles(), "Could not load vehicles")
        self.vehicles = vehicles if ok else []

    def select_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"unknown tab: {tab}")
        self.tab = tab
        self.query = ""
        self.changed()

    def set_filters(self, query=None, role=None, status=None, vehicle_type=None) -> None:
        if query is not None:
            self.query = query
        if role is not None:
            self.role_filter = role
        if status is not None:
            self.status_filter = status
        if vehicle_type is not None:
            self.type_filter = vehicle_type
        self.changed()

    # ---------- filtered views ----------
    def visible_users(self) -> list[User]:
        q = self.query.strip().lower()
        return [
            u for u in self.users
            if _hit(q, u.name, u.username, u.email)
            and (self.role_filter == ALL or u.role.value == self.role_filter.upper())
        ]

    def visible_drivers(self) -> list[Driver]:
        q = self.query.strip().lower()
        return [
            d for d in self.drivers
            if _hit(q, d.name, d.username, d.phone, d.license_number)
            and (self.status_filter == ALL or d.status == self.status_filter.upper())
        ]

    def visible_vehicles(self) -> list[Vehicle]:
        q = self.query.strip().lower()
        return [
            v for v in self.vehicles
            if _hit(q, v.name, v.registration_number, v.model)
            and (self.type_filter == ALL or v.type == self.type_filter.upper())
        ]

    # ---------- mutations ----------
    async def create_user(self, form: UserForm, photo: Optional[tuple] = None) -> bool:
        if not self.require_admin():
            return False
        try:
            form.validate()
        except FormError as ex:
            return self.reject(ex)
        ok, _ = await self.call(self.api.create_profile(form.fields(), photo), "Failed to create user")
        if ok:
            self.notify(Notice("Success!", f'User "{form.username.strip()}" created successfully.', "success"))
            await self.load()
        return ok

    async def create_vehicle(self, form: VehicleForm) -> bool:
        if not self.require_admin():
            return False
        try:
            form.validate()
        except FormError as ex:
            return self.reject(ex)
        ok, _ = await self.call(self.api.create_vehicle(form.payload()), "Failed to create vehicle")
        if ok:
            self.notify(Notice("Vehicle added", form.registration_number.strip(), "success"))
            await self.load()
        return ok

    async def update(self, kind: str, profile_id: str, changes: dict) -> bool:
        if not self.require_admin():
            return False
        ok, _ = await self.call(self.api.update_profile(kind, profile_id, changes), "Update failed")
        if ok:
            self.notify(Notice("Profile updated", "", "success"))
            await self.load()
        return ok

    async def delete(self, kind: str, profile_id: str) -> bool:
        if not self.require_admin():
            return False
        ok, _ = await self.call(self.api.delete_profile(kind, profile_id), "Delete failed")
        if ok:
            self.notify(Notice("Profile deleted", "", "success"))
            await self.load()
        return ok
