# fleettrack/services/fleet_api.py
"""One method per backend endpoint the console consumes; all return normalized models."""
import logging
from typing import Optional

from fleettrack.core.errors import AuthError, NetworkError, ServerError
from fleettrack.services.api_client import VERIFY_PATH, ApiClient
from fleettrack.services.resources import (
    Assignment,
    DashboardSummary,
    Driver,
    LoginResult,
    Profile,
    SearchResults,
    ServiceRecord,
    User,
    Vehicle,
)

logger = logging.getLogger(__name__)

PROFILE_KINDS = ("users", "drivers", "vehicles")


class FleetApi:
    def __init__(self, client: ApiClient):
        self.client = client

    # ---------- auth ----------
    async def login(self, username: str, password: str) -> LoginResult:
        data = await self.client.post("/auth/login", json={"username": username, "password": password})
        return LoginResult.from_api(data)

    async def verify_token(self, token: str) -> int:
        """Status code of GET /auth/verify for `token`. Raises NetworkError when unreachable."""
        try:
            await self.client.get(VERIFY_PATH, headers={"Authorization": f"Bearer {token}"})
        except NetworkError:
            raise
        except (AuthError, ServerError) as ex:
            return ex.status or 500
        return 200

    # ---------- dashboard ----------
    async def dashboard(self) -> DashboardSummary:
        return DashboardSummary.from_api(await self.client.get("/dashboard"))

    # ---------- assignments ----------
    async def list_assignments(self) -> list[Assignment]:
        return Assignment.many(await self.client.get("/assignments"), "assignments")

    async def get_assignment(self, assignment_id: str) -> Assignment:
        return Assignment.from_api(await self.client.get(f"/assignments/{assignment_id}"))

    async def create_assignment(self, payload: dict) -> Assignment:
        return Assignment.from_api(await self.client.post("/assignments", json=payload))

    async def update_assignment(self, assignment_id: str, payload: dict) -> Assignment:
        return Assignment.from_api(await self.client.put(f"/assignments/{assignment_id}", json=payload))

    async def delete_assignment(self, assignment_id: str) -> None:
        await self.client.delete(f"/assignments/{assignment_id}")

    # ---------- profiles ----------
    async def list_users(self) -> list[User]:
        return User.many(await self.client.get("/v1/profiles/users"), "users")

    async def list_drivers(self) -> list[Driver]:
        return Driver.many(await self.client.get("/v1/profiles/drivers"), "drivers")

    async def list_vehicles(self) -> list[Vehicle]:
        return Vehicle.many(await self.client.get("/v1/profiles/vehicles"), "vehicles")

    async def fleet_vehicles(self) -> list[Vehicle]:
        """Vehicle picker source; /vehicles is open to drivers, the profiles list is admin-only."""
        try:
            data = await self.client.get("/vehicles")
        except ServerError as ex:
            if ex.status != 404:
                raise
            logger.info("/vehicles not available, falling back to profiles list")
            data = await self.client.get("/v1/profiles/vehicles")
        return Vehicle.many(data, "vehicles")

    async def create_profile(self, fields: dict, photo: Optional[tuple] = None) -> dict:
        # multipart/form-data only; (None, value) parts are plain form fields
        parts = {k: (None, str(v)) for k, v in fields.items()}
        if photo:
            parts["photo"] = photo
        return _checked(await self.client.request("POST", "/v1/profiles/create", files=parts))

    async def create_vehicle(self, payload: dict) -> dict:
        return _checked(await self.client.post("/v1/profiles/vehicles/create", json=payload))

    async def update_profile(self, kind: str, profile_id: str, payload: dict) -> dict:
        _check_kind(kind)
        return _checked(await self.client.put(f"/v1/profiles/{kind}/{profile_id}", json=payload))

    async def delete_profile(self, kind: str, profile_id: str) -> None:
        _check_kind(kind)
        await self.client.delete(f"/v1/profiles/{kind}/{profile_id}")

    async def my_profile(self, user_id: str) -> Profile:
        data = _checked(await self.client.get(f"/v1/profiles/me/{user_id}"))
        return Profile.from_api(data.get("profile", data))

    # ---------- services ----------
    async def list_services(self) -> list[ServiceRecord]:
        return ServiceRecord.many(await self.client.get("/services"), "services")

    async def create_service(self, payload: dict) -> ServiceRecord:
        return ServiceRecord.from_api(await self.client.post("/services", json=payload))

    async def update_service(self, service_id: str, payload: dict) -> ServiceRecord:
        return ServiceRecord.from_api(await self.client.put(f"/services/{service_id}", json=payload))

    async def delete_service(self, service_id: str) -> None:
        await self.client.delete(f"/services/{service_id}")

    # ---------- tracking ----------
    async def tracked_vehicles(self) -> list[Vehicle]:
        return Vehicle.many(await self.client.get("/track/vehicles/all"), "vehicles")

    async def search_tracking(self, query: str) -> SearchResults:
        return SearchResults.from_api(await self.client.get("/track/vehicles/search", params={"query": query}))

    async def tracked_vehicle(self, vehicle_id: str) -> Vehicle:
        return Vehicle.from_api(await self.client.get(f"/track/vehicles/{vehicle_id}"))


def _checked(data) -> dict:
    """Profile endpoints answer 200 with {success: false, message} for business errors."""
    if not isinstance(data, dict):
        return {}
    if data.get("success") is False:
        raise ServerError(data.get("message") or "Request failed", 200)
    return data


def _check_kind(kind: str) -> None:
    if kind not in PROFILE_KINDS:
        raise ValueError(f"unknown profile kind: {kind}")

