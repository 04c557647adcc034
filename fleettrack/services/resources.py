# fleettrack/services/resources.py
"""
Read models for backend resources.

This is the single normalization boundary: the backend returns the same
entity under different field names depending on the endpoint (vehicleName vs
name, registrationNumber vs plateNumber, mailId vs email, assignedDriver as an
id or as an object, lists bare or wrapped in {"vehicles": [...]}). Pages only
ever see the canonical shapes below.
"""
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from fleettrack.core.policy import Role


# --------------------------
# Coercion helpers
# --------------------------
def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _id(v: Any) -> Optional[str]:
    if isinstance(v, dict):
        v = v.get("id")
    return None if v is None or v == "" else str(v)


def _code(v: Any) -> str:
    # "on-trip" / "on_trip" / "ON_TRIP" -> "ON_TRIP"
    return _text(v).strip().upper().replace("-", "_").replace(" ", "_")


def _date(v: Any) -> Optional[date]:
    if isinstance(v, date):
        return v
    try:
        return date.fromisoformat(str(v)[:10])
    except (TypeError, ValueError):
        return None


def _datetime(v: Any) -> Optional[datetime]:
    if isinstance(v, datetime):
        return v
    try:
        return datetime.fromisoformat(str(v))
    except (TypeError, ValueError):
        return None


def _int(v: Any) -> int:
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return 0


def _num(v: Any) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


Text = Annotated[str, BeforeValidator(_text)]
Id = Annotated[Optional[str], BeforeValidator(_id)]
Code = Annotated[str, BeforeValidator(_code)]
Int = Annotated[int, BeforeValidator(_int)]
Num = Annotated[float, BeforeValidator(_num)]
MaybeDate = Annotated[Optional[date], BeforeValidator(_date)]
MaybeDateTime = Annotated[Optional[datetime], BeforeValidator(_datetime)]


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


def unwrap_list(data: Any, *keys: str) -> list[dict]:
    """`[...]`, `{"<key>": [...]}` or `{"<key>": {"<key>": [...]}}` -> list of dicts."""
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    if isinstance(data, dict):
        for key in keys:
            val = data.get(key)
            if isinstance(val, list):
                return [d for d in val if isinstance(d, dict)]
            if isinstance(val, dict):
                return unwrap_list(val, key)
    return []


class Resource(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_api(cls, data: Any):
        return cls.model_validate(data if isinstance(data, dict) else {})

    @classmethod
    def many(cls, data: Any, *keys: str) -> list:
        return [cls.model_validate(d) for d in unwrap_list(data, *keys)]


# --------------------------
# Enums
# --------------------------
class AssignmentStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value: Any) -> "AssignmentStatus":
        try:
            return cls(_code(value))
        except ValueError:
            return cls.IN_PROGRESS


class ServiceStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"

    @classmethod
    def parse(cls, value: Any) -> "ServiceStatus":
        try:
            return cls(_code(value))
        except ValueError:
            return cls.PENDING


# --------------------------
# Shared submodels
# --------------------------
class GeoPoint(BaseModel):
    lat: Num = 0.0
    lng: Num = 0.0

    @property
    def valid(self) -> bool:
        # backend reports (0, 0) for vehicles that never sent a position
        return not (self.lat == 0.0 and self.lng == 0.0)


def _point(data: dict, lat_keys: tuple, lng_keys: tuple) -> Optional[dict]:
    lat = next((data[k] for k in lat_keys if data.get(k) is not None), None)
    lng = next((data[k] for k in lng_keys if data.get(k) is not None), None)
    if lat is None or lng is None:
        return None
    return {"lat": lat, "lng": lng}


class VehicleRef(Resource):
    id: Id = None
    name: Text = Field("", validation_alias=_aliases("vehicleName", "name"))
    registration_number: Text = Field(
        "", validation_alias=_aliases("registrationNumber", "plateNumber", "registration_number")
    )

    @model_validator(mode="before")
    @classmethod
    def _scalar(cls, data: Any) -> Any:
        return {"id": data} if isinstance(data, (int, str)) else data


class DriverRef(Resource):
    id: Id = None
    name: Text = ""
    username: Text = ""
    phone: Text = Field("", validation_alias=_aliases("phoneNumber", "phone"))
    status: Code = ""

    @model_validator(mode="before")
    @classmethod
    def _scalar(cls, data: Any) -> Any:
        return {"id": data} if isinstance(data, (int, str)) else data


# --------------------------
# Profiles
# --------------------------
class Vehicle(Resource):
    id: Id = None
    name: Text = Field("", validation_alias=_aliases("vehicleName", "name"))
    registration_number: Text = Field(
        "", validation_alias=_aliases("registrationNumber", "plateNumber", "registration_number")
    )
    model: Text = ""
    type: Code = ""
    capacity: Int = 0
    status: Code = ""
    location_status: Code = Field(
        "", validation_alias=_aliases("vehicleLocationStatus", "vehicle_location_status", "location_status")
    )
    last_service_date: MaybeDate = Field(None, validation_alias=_aliases("lastServiceDate", "serviceDate"))
    next_service_date: MaybeDate = Field(None, validation_alias=_aliases("nextServiceDate"))
    fuel_level: Num = Field(0.0, validation_alias=_aliases("fuelLevel", "fuel_level"))
    mileage: Num = 0.0
    current_location: Text = Field("", validation_alias=_aliases("currentLocation", "current_location"))
    location: Optional[GeoPoint] = None
    assigned_driver_id: Id = None
    assigned_driver: Optional[DriverRef] = None

    @model_validator(mode="before")
    @classmethod
    def _reshape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not isinstance(data.get("location"), dict):
            data["location"] = _point(
                data, ("latitude", "vehicleLatitude", "lat"), ("longitude", "vehicleLongitude", "lng")
            )
        driver = data.pop("assignedDriver", None)
        if isinstance(driver, dict):
            data["assigned_driver"] = driver
            data["assigned_driver_id"] = driver.get("id")
        elif driver is not None:
            data["assigned_driver_id"] = driver
        elif data.get("assignedDriverId") is not None:
            data["assigned_driver_id"] = data["assignedDriverId"]
        return data

    @property
    def tracked(self) -> bool:
        return self.location_status != "UNTRACKED" and self.location is not None and self.location.valid

    def label(self) -> str:
        return f"{self.registration_number} - {self.name or self.model}".strip(" -")


class Driver(Resource):
    id: Id = None
    name: Text = ""
    username: Text = ""
    email: Text = Field("", validation_alias=_aliases("mailId", "email"))
    phone: Text = Field("", validation_alias=_aliases("phoneNumber", "phone"))
    license_number: Text = Field("", validation_alias=_aliases("licenseNumber", "license_number"))
    status: Code = ""
    total_trips: Int = Field(0, validation_alias=_aliases("totalTrips", "total_trips"))
    rating: Num = Field(0.0, validation_alias=_aliases("rating", "ratings"))
    assigned_vehicle_id: Id = None
    assigned_vehicle_registration: Optional[str] = Field(
        None, validation_alias=_aliases("assignedVehicleRegistration", "assigned_vehicle_registration")
    )

    @model_validator(mode="before")
    @classmethod
    def _reshape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        vehicle = data.pop("assignedVehicle", None)
        if vehicle is None:
            vehicle = data.get("assignedVehicleId")
        if isinstance(vehicle, dict):
            data.setdefault("assignedVehicleRegistration", vehicle.get("plateNumber") or vehicle.get("registrationNumber"))
        data["assigned_vehicle_id"] = vehicle
        return data


class User(Resource):
    id: Id = None
    name: Text = ""
    username: Text = ""
    email: Text = Field("", validation_alias=_aliases("mailId", "email"))
    phone: Text = Field("", validation_alias=_aliases("phoneNumber", "phone"))
    role: Annotated[Role, BeforeValidator(Role.parse)] = Role.DRIVER
    status: Code = ""
    photo: Optional[str] = Field(None, validation_alias=_aliases("photo", "profilePhoto"))
    created_date: Text = Field("", validation_alias=_aliases("createdDate", "created_date"))


class Profile(User):
    """GET /v1/profiles/me/{id}: a user plus driver details when role is DRIVER."""

    license_number: Text = Field("", validation_alias=_aliases("licenseNumber", "license_number"))
    total_trips: Int = Field(0, validation_alias=_aliases("totalTrips", "total_trips"))
    rating: Num = 0.0
    joined_date: Text = Field("", validation_alias=_aliases("joinedDate", "joined_date"))
    assigned_vehicle: Optional[Vehicle] = Field(None, validation_alias=_aliases("assignedVehicle", "assigned_vehicle"))

    @property
    def is_driver(self) -> bool:
        return self.role == Role.DRIVER


# --------------------------
# Assignments & service
# --------------------------
class Assignment(Resource):
    id: Id = None
    name: Text = Field("", validation_alias=_aliases("assignmentName", "route", "name"))
    vehicle: Optional[VehicleRef] = None
    driver: Optional[DriverRef] = None
    start_location: Text = Field("", validation_alias=_aliases("startLocation", "start_location"))
    drop_location: Text = Field("", validation_alias=_aliases("dropLocation", "endLocation", "drop_location"))
    start: Optional[GeoPoint] = None
    end: Optional[GeoPoint] = None
    route_distance: Optional[float] = Field(None, validation_alias=_aliases("routeDistance", "route_distance"))
    start_time: MaybeDateTime = Field(None, validation_alias=_aliases("startTime", "start_time"))
    end_time: MaybeDateTime = Field(None, validation_alias=_aliases("endTime", "end_time"))
    status: Annotated[AssignmentStatus, BeforeValidator(AssignmentStatus.parse)] = AssignmentStatus.IN_PROGRESS

    @model_validator(mode="before")
    @classmethod
    def _reshape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("vehicle") is None and data.get("vehicleId") is not None:
            data["vehicle"] = data["vehicleId"]
        if data.get("driver") is None and data.get("driverId") is not None:
            data["driver"] = data["driverId"]
        if not isinstance(data.get("start"), dict):
            data["start"] = _point(data, ("startLatitude",), ("startLongitude",))
        if not isinstance(data.get("end"), dict):
            data["end"] = _point(data, ("endLatitude",), ("endLongitude",))
        return data

    def matches(self, query: str) -> bool:
        q = (query or "").strip().lower()
        if not q:
            return True
        return any(q in s.lower() for s in (self.name, self.start_location, self.drop_location))


class ServiceRecord(Resource):
    id: Id = None
    service_name: Text = Field("", validation_alias=_aliases("serviceName", "service_name"))
    vehicle: Optional[VehicleRef] = None
    service_date: MaybeDate = Field(None, validation_alias=_aliases("serviceDate", "service_date"))
    next_service_date: MaybeDate = Field(None, validation_alias=_aliases("nextServiceDate", "next_service_date"))
    notes: Text = ""
    amount: Num = 0.0
    status: Annotated[ServiceStatus, BeforeValidator(ServiceStatus.parse)] = ServiceStatus.PENDING

    @model_validator(mode="before")
    @classmethod
    def _reshape(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("vehicle") is None and data.get("vehicleId") is not None:
            data = {**data, "vehicle": data["vehicleId"]}
        return data

    @property
    def registration_number(self) -> str:
        return self.vehicle.registration_number if self.vehicle else ""


# --------------------------
# Aggregates
# --------------------------
class SearchResults(BaseModel):
    vehicles: list[Vehicle] = []
    drivers: list[Driver] = []

    @classmethod
    def from_api(cls, data: Any) -> "SearchResults":
        data = data if isinstance(data, dict) else {}
        return cls(
            vehicles=Vehicle.many(data.get("vehicles"), "vehicles"),
            drivers=Driver.many(data.get("drivers"), "drivers"),
        )

    @property
    def empty(self) -> bool:
        return not self.vehicles and not self.drivers


class DashboardSummary(BaseModel):
    vehicles: list[Vehicle] = []
    drivers: list[Driver] = []
    users: list[User] = []
    assignments: list[Assignment] = []
    services: list[ServiceRecord] = []

    @classmethod
    def from_api(cls, data: Any) -> "DashboardSummary":
        data = data if isinstance(data, dict) else {}
        return cls(
            vehicles=Vehicle.many(data.get("vehicles"), "vehicles"),
            drivers=Driver.many(data.get("drivers"), "drivers"),
            users=User.many(data.get("users"), "users"),
            assignments=Assignment.many(data.get("assignments"), "assignments"),
            services=ServiceRecord.many(data.get("services"), "services"),
        )

    @property
    def active_vehicles(self) -> int:
        return sum(1 for v in self.vehicles if v.status == "ACTIVE")

    @property
    def active_drivers(self) -> int:
        return sum(1 for d in self.drivers if d.status in ("ACTIVE", "ON_TRIP", "ONTRIP"))

    @property
    def in_progress_assignments(self) -> int:
        return sum(1 for a in self.assignments if a.status == AssignmentStatus.IN_PROGRESS)

    @property
    def pending_services(self) -> int:
        return sum(1 for s in self.services if s.status in (ServiceStatus.PENDING, ServiceStatus.OVERDUE))

    @property
    def vehicles_in_service(self) -> list[Vehicle]:
        return [v for v in self.vehicles if v.status in ("SERVICE", "MAINTENANCE")]

    def recent_assignments(self, limit: int = 5) -> list[Assignment]:
        return self.assignments[:limit]


class LoginResult(Resource):
    success: bool = False
    token: Optional[str] = None
    username: Text = ""
    role: Text = ""
    user_id: Id = Field(None, validation_alias=_aliases("userId", "user_id", "id"))
    name: Text = ""
    message: Text = ""

    def identity(self) -> dict:
        return {"userId": self.user_id, "username": self.username, "name": self.name, "role": self.role}
