from datetime import date

import anyio
import httpx
import pytest

from fleettrack.core.errors import ServerError
from fleettrack.pages.assignments import AssignmentForm, AssignmentsController
from fleettrack.pages.dashboard import DashboardController
from fleettrack.pages.driver_profile import NOT_FOUND, DriverProfileController
from fleettrack.pages.login import INVALID_CREDENTIALS, SLOW_RESPONSE, WELCOME, LoginController
from fleettrack.pages.profiles import ProfilesController, UserForm, VehicleForm
from fleettrack.pages.service import ServiceController, ServiceForm
from fleettrack.pages.track import TYPE_COLORS, TrackController, marker_color
from fleettrack.services.geocode import Geocoder
from fleettrack.services.resources import LoginResult

pytestmark = pytest.mark.anyio


@pytest.fixture
def login_page(api, store, guard, navigations, notices):
    return LoginController(api, store, guard, navigations.append, notify=notices.append, slow_after=5.0)


# ---------- login ----------
async def test_admin_login_lands_on_dashboard(login_page, store, navigations, notices):
    assert await login_page.submit("admin", "admin123")
    assert store.session.is_admin
    assert navigations == ["/dashboard"]
    assert notices[0].title == WELCOME


async def test_login_requires_both_fields_and_sends_nothing(login_page, backend, notices):
    assert not await login_page.submit("  ", "secret")
    assert not await login_page.submit("admin", "")
    assert backend.calls == []
    assert all(n.level == "warning" for n in notices)


async def test_login_failure_shows_backend_message(login_page, store):
    assert not await login_page.submit("admin", "nope")
    assert login_page.message == "Invalid credentials"
    assert not store.authenticated


async def test_login_failure_without_reason_uses_default(login_page, backend):
    backend.failures[("POST", "/api/auth/login")] = (500, {})
    assert not await login_page.submit("admin", "admin123")
    assert login_page.message == INVALID_CREDENTIALS


async def test_login_unsuccessful_body(login_page, backend):
    backend.failures[("POST", "/api/auth/login")] = (200, {"success": False})
    assert not await login_page.submit("admin", "admin123")
    assert login_page.message == INVALID_CREDENTIALS


async def test_login_returns_to_requested_page(login_page, guard, navigations):
    await guard.evaluate("/assignments")
    assert await login_page.submit("driver", "driver123")
    assert navigations == ["/assignments"]


async def test_slow_login_shows_advisory(store, guard, navigations, notices):
    class SlowApi:
        async def login(self, username, password):
            await anyio.sleep(0.2)
            return LoginResult(success=True, token="tok-admin", username=username, role="ADMIN", user_id="1")

    page = LoginController(SlowApi(), store, guard, navigations.append, notify=notices.append, slow_after=0.01)
    assert await page.submit("admin", "admin123")
    assert SLOW_RESPONSE in [n.message for n in notices]


async def test_fast_login_has_no_advisory(login_page, notices):
    await login_page.submit("admin", "admin123")
    await anyio.sleep(0)
    assert SLOW_RESPONSE not in [n.message for n in notices]


async def test_driver_sent_to_own_profile_with_one_notice(login_page, guard, navigations, notices):
    await login_page.submit("driver", "driver123")
    decision = await guard.evaluate("/dashboard")
    assert decision.redirect_to == "/profile"
    assert len([n for n in notices if n.title == "Access denied"]) == 1


# ---------- dashboard ----------
async def test_dashboard_counters(api, store, sign_in, notices):
    await sign_in("admin", "admin123")
    page = DashboardController(api, store, notify=notices.append)
    await page.load()
    stats = dict(page.stats())
    assert stats["Active Vehicles"] == 1
    assert stats["Pending Services"] == 1
    assert [v.registration_number for v in page.summary.vehicles_in_service] == ["TN-02-CD-5678"]


# ---------- assignments ----------
async def test_assignments_db_unavailable(api, store, sign_in, backend, notices):
    await sign_in("admin", "admin123")
    backend.failures[("GET", "/api/assignments")] = (500, {"message": "DB unavailable"})
    page = AssignmentsController(api, store, notify=notices.append)

    await page.load()

    assert page.visible() == []
    assert page.error == "DB unavailable"
    assert "DB unavailable" in [n.message for n in notices]
    assert not page.loading


async def test_forbidden_list_signs_out(api, store, sign_in, backend, navigations):
    await sign_in("admin", "admin123")
    backend.failures[("GET", "/api/assignments")] = (403, {"message": "Forbidden"})
    page = AssignmentsController(api, store)

    await page.load()

    assert not store.authenticated
    assert page.error == "Session expired. Please login again."
    assert navigations[-1] == "/login"


async def test_driver_sees_only_own_assignments(api, store, sign_in):
    await sign_in("driver", "driver123")
    page = AssignmentsController(api, store)
    await page.load()
    assert [a.name for a in page.visible()] == ["Morning Route"]
    # pickers are admin-only
    assert page.vehicles == [] and page.drivers == []


async def test_assignment_filters(api, store, sign_in):
    await sign_in("admin", "admin123")
    page = AssignmentsController(api, store)
    await page.load()
    page.set_filters(query="airport")
    assert [a.name for a in page.visible()] == ["Airport Run"]
    page.set_filters(query="", status="IN_PROGRESS")
    assert [a.name for a in page.visible()] == ["Morning Route"]
    assert page.counts()["COMPLETED"] == 1


async def test_create_assignment_validates_before_sending(api, store, sign_in, backend, notices):
    await sign_in("admin", "admin123")
    page = AssignmentsController(api, store, notify=notices.append)
    backend.calls.clear()
    assert not await page.create(AssignmentForm(name="Night run", vehicle_id="10"))
    assert backend.calls == []
    assert notices[-1].title == "Missing fields"


async def test_create_update_delete_assignment(api, store, sign_in, backend):
    await sign_in("admin", "admin123")
    page = AssignmentsController(api, store)
    form = AssignmentForm(name="Night run", vehicle_id="10", driver_id="3", start_location="A", drop_location="B")

    assert await page.create(form)
    created = next(a for a in page.assignments if a.name == "Night run")
    stored = backend.assignments[int(created.id)]
    assert stored["vehicle"] == {"id": 10} and stored["driver"] == {"id": 3}
    assert stored["startLatitude"] == 0.0

    form.name = "Night express"
    assert await page.update(created.id, form)
    assert backend.assignments[int(created.id)]["assignmentName"] == "Night express"

    assert await page.delete(created.id)
    assert int(created.id) not in backend.assignments


async def test_driver_cannot_create_assignment(api, store, sign_in, backend, notices):
    await sign_in("driver", "driver123")
    page = AssignmentsController(api, store, notify=notices.append)
    backend.calls.clear()
    assert not await page.create(AssignmentForm(name="x", vehicle_id="10", driver_id="2"))
    assert backend.calls == []


async def test_location_from_geocoder_and_map(api, store, sign_in):
    def nominatim(request):
        if request.url.path == "/search":
            return httpx.Response(200, json=[{"lat": "13.05", "lon": "80.25", "display_name": "Guindy, Chennai"}])
        return httpx.Response(200, json={"display_name": "Adyar, Chennai"})

    geocoder = Geocoder("https://geo.test", "mailto:ops@fleet.test", transport=httpx.MockTransport(nominatim))
    await sign_in("admin", "admin123")
    page = AssignmentsController(api, store, geocoder=geocoder)
    form = AssignmentForm()

    assert await page.locate(form, "start", "guindy")
    await page.pick_on_map(form, "drop", 13.0, 80.26)
    await geocoder.aclose()

    assert (form.start.lat, form.start.lng, form.start_location) == (13.05, 80.25, "Guindy, Chennai")
    assert (form.end.lat, form.drop_location) == (13.0, "Adyar, Chennai")
    assert form.payload()["endLongitude"] == 80.26


async def test_geocoder_error_object_keeps_form_unchanged(api, store, sign_in, notices):
    geocoder = Geocoder(
        "https://geo.test",
        "mailto:ops@fleet.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "Unable to geocode"})),
    )
    await sign_in("admin", "admin123")
    page = AssignmentsController(api, store, notify=notices.append, geocoder=geocoder)
    form = AssignmentForm()

    assert not await page.locate(form, "start", "somewhere")
    await geocoder.aclose()

    assert form.start_location == ""
    assert notices[-1].title == "Location not found"


# ---------- service ----------
async def test_service_counters_and_filters(api, store, sign_in):
    await sign_in("admin", "admin123")
    page = ServiceController(api, store)
    await page.load()

    assert page.counters() == {"pending": 1, "overdue": 1, "completed": 1}
    assert len(page.vehicles) == 2
    page.set_filters(query="tn-02")
    assert [r.service_name for r in page.visible()] == ["Brake Inspection"]
    page.set_filters(query="", service_type="Oil Change")
    assert [r.service_name for r in page.visible()] == ["Oil Change"]


async def test_service_create_defaults(api, store, sign_in, backend):
    await sign_in("admin", "admin123")
    page = ServiceController(api, store)
    form = ServiceForm(vehicle_id="10", service_name="Tire Rotation", service_date=date(2024, 5, 1))

    assert await page.create(form)

    stored = next(s for s in backend.services.values() if s["serviceName"] == "Tire Rotation")
    assert stored["nextServiceDate"] == "2024-05-01"
    assert stored["amount"] == 0
    assert stored["vehicle"] == {"id": 10}


async def test_service_create_requires_date(api, store, sign_in, backend, notices):
    await sign_in("admin", "admin123")
    page = ServiceController(api, store, notify=notices.append)
    backend.calls.clear()
    assert not await page.create(ServiceForm(vehicle_id="10", service_name="Oil"))
    assert backend.calls == []


async def test_service_delete_refreshes_list(api, store, sign_in, notices):
    await sign_in("admin", "admin123")
    page = ServiceController(api, store, notify=notices.append)
    await page.load()

    assert await page.delete("201")
    assert [r.service_name for r in page.records] == ["Oil Change"]
    assert page.counters()["overdue"] == 0
    assert notices[-1].title == "Service record deleted"


async def test_driver_cannot_delete_service(api, store, sign_in, backend, notices):
    await sign_in("driver", "driver123")
    page = ServiceController(api, store, notify=notices.append)
    backend.calls.clear()
    assert not await page.delete("201")
    assert backend.calls == []
    assert 201 in backend.services


async def test_service_vehicles_fall_back_to_profiles(api, store, sign_in, backend):
    await sign_in("admin", "admin123")
    backend.failures[("GET", "/api/vehicles")] = (404, {"message": "Not Found"})
    page = ServiceController(api, store)
    await page.load()
    assert {v.registration_number for v in page.vehicles} == {"TN-01-AB-1234", "TN-02-CD-5678"}


# ---------- profiles ----------
async def test_admin_sees_vehicle_list(login_page, api, store, notices):
    await login_page.submit("admin", "admin123")
    page = ProfilesController(api, store, notify=notices.append)
    await page.load()
    page.select_tab("vehicles")
    assert [v.registration_number for v in page.visible_vehicles()] == ["TN-01-AB-1234", "TN-02-CD-5678"]


async def test_created_vehicle_round_trips(api, store, sign_in):
    await sign_in("admin", "admin123")
    page = ProfilesController(api, store)
    form = VehicleForm(name="Van 7", registration_number="KA-05-MN-0007", model="Eeco", type="car", capacity=7)

    assert await page.create_vehicle(form)

    matches = [v for v in page.vehicles if v.registration_number == "KA-05-MN-0007"]
    assert len(matches) == 1
    assert matches[0].name == "Van 7" and matches[0].capacity == 7


async def test_duplicate_vehicle_reports_backend_message(api, store, sign_in, notices):
    await sign_in("admin", "admin123")
    page = ProfilesController(api, store, notify=notices.append)
    ok = await page.create_vehicle(VehicleForm(name="Dup", registration_number="TN-01-AB-1234"))
    assert not ok
    assert notices[-1].message == "Registration number already exists"


async def test_create_user_sends_form_fields(api, store, sign_in, backend):
    await sign_in("admin", "admin123")
    page = ProfilesController(api, store)
    assert await page.create_user(UserForm(username="zoe", password="pw", role=store.role))
    created = next(u for u in backend.users.values() if u["username"] == "zoe")
    assert created["role"] == "ADMIN"
    assert created["name"] == "Default User" and created["mailId"] == "-"
    assert "zoe" in [u.username for u in page.users]


async def test_profile_filters(api, store, sign_in):
    await sign_in("admin", "admin123")
    page = ProfilesController(api, store)
    await page.load()
    page.set_filters(role="ADMIN")
    assert [u.username for u in page.visible_users()] == ["admin"]
    page.set_filters(status="ON_TRIP")
    assert [d.username for d in page.visible_drivers()] == ["driver"]
    page.set_filters(vehicle_type="TRUCK")
    assert [v.name for v in page.visible_vehicles()] == ["Hauler"]


async def test_update_and_delete_profile(api, store, sign_in, backend):
    await sign_in("admin", "admin123")
    page = ProfilesController(api, store)
    assert await page.update("drivers", "3", {"phoneNumber": "555-9999"})
    assert backend.users[3]["phoneNumber"] == "555-9999"
    assert await page.delete("vehicles", "11")
    assert 11 not in backend.vehicles


# ---------- driver profile ----------
async def test_own_profile_for_driver(api, store, sign_in):
    await sign_in("driver", "driver123")
    page = DriverProfileController(api, store)
    await page.load()
    assert page.error is None
    assert page.profile.license_number == "DL-2"
    assert page.profile.assigned_vehicle.registration_number == "TN-01-AB-1234"


async def test_own_profile_missing_shows_error_state(api, store, notices):
    # a valid token whose identity points at a user the backend doesn't know
    store.login("tok-admin", {"userId": 999, "username": "ghost", "role": "ADMIN"})
    page = DriverProfileController(api, store, notify=notices.append)

    await page.load()

    assert page.profile is None
    assert page.error == NOT_FOUND
    assert page.error_status == 404
    assert "User not found" in [n.message for n in notices]
    await page.retry()
    assert page.profile is None and page.error == NOT_FOUND


async def test_own_profile_server_error_keeps_backend_message(api, store, sign_in, backend):
    await sign_in("driver", "driver123")
    backend.failures[("GET", "/api/v1/profiles/me/2")] = (500, {"message": "Error: 404"})
    page = DriverProfileController(api, store)
    await page.load()
    assert page.error == "Error: 404"
    assert page.error_status == 500


async def test_own_profile_with_expired_session(api, store, sign_in, backend):
    await sign_in("driver", "driver123")
    backend.failures[("GET", "/api/v1/profiles/me/2")] = (401, {"message": "expired"})
    page = DriverProfileController(api, store)
    await page.load()
    assert page.error == "Session expired. Please login again."
    assert not store.authenticated


# ---------- track ----------
async def test_track_markers_skip_unknown_positions(api, store, sign_in):
    await sign_in("admin", "admin123")
    page = TrackController(api, store)
    await page.load()

    markers = page.markers()
    assert [m.vehicle_id for m in markers] == ["10"]
    assert markers[0].color == TYPE_COLORS["BUS"]
    assert marker_color("van") == "#6b7280"
    assert marker_color("cab") == marker_color("CAR")


async def test_track_search_select_and_follow(api, store, sign_in, notices):
    await sign_in("admin", "admin123")
    page = TrackController(api, store, notify=notices.append)
    await page.load()

    await page.search("dan")
    driver = page.results.drivers[0]
    await page.select_driver(driver)
    assert page.selected.id == "10"
    assert page.results is None

    page.start_tracking()
    await page.refresh_selected()
    assert page.tracking and page.focus() == (13.0827, 80.2707)
    assert len(page.markers()) == 1

    page.toggle_view_all()
    assert page.view_all
    page.end_tracking()
    assert page.selected is None and not page.tracking

    await page.search("   ")
    assert page.results is None


async def test_unmounted_page_drops_late_failure(api, store, notices):
    page = DashboardController(api, store, notify=notices.append)

    async def late_failure():
        page.unmount()
        raise ServerError("DB unavailable", 500)

    ok, value = await page.call(late_failure())
    assert (ok, value) == (False, None)
    assert notices == []
