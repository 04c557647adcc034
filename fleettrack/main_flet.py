# fleettrack/main_flet.py
import logging

import flet as ft
from dotenv import load_dotenv

from fleettrack.core.config import settings
from fleettrack.core.guards import GuardState, RouteGuard
from fleettrack.core.heartbeat import SessionHeartbeat
from fleettrack.core.log import configure_logging
from fleettrack.core.policy import LOGIN_PATH, NAV_ITEMS
from fleettrack.core.session import SessionStore
from fleettrack.core.storage import ClientStorage, JsonFileStorage
from fleettrack.pages.assignments import AssignmentsController
from fleettrack.pages.dashboard import DashboardController
from fleettrack.pages.driver_profile import DriverProfileController
from fleettrack.pages.login import LoginController
from fleettrack.pages.profiles import ProfilesController
from fleettrack.pages.service import ServiceController
from fleettrack.pages.track import TrackController
from fleettrack.services.api_client import ApiClient
from fleettrack.services.fleet_api import FleetApi
from fleettrack.services.geocode import Geocoder
from fleettrack.ui.assignments_view import AssignmentsView
from fleettrack.ui.dashboard_view import DashboardView
from fleettrack.ui.login_view import LoginView
from fleettrack.ui.profile_view import ProfileView
from fleettrack.ui.profiles_view import ProfilesView
from fleettrack.ui.service_view import ServiceView
from fleettrack.ui.toast import make_notifier
from fleettrack.ui.track_view import TrackView

logger = logging.getLogger(__name__)

NAV_ICONS = {
    "/dashboard": ft.Icons.DASHBOARD,
    "/track": ft.Icons.MAP,
    "/assignments": ft.Icons.ASSIGNMENT,
    "/service": ft.Icons.BUILD,
    "/profiles": ft.Icons.PEOPLE,
    "/profile": ft.Icons.PERSON,
}

# path -> (controller class, view class)
PAGES = {
    "/dashboard": (DashboardController, DashboardView),
    "/track": (TrackController, TrackView),
    "/assignments": (AssignmentsController, AssignmentsView),
    "/service": (ServiceController, ServiceView),
    "/profiles": (ProfilesController, ProfilesView),
    "/profile": (DriverProfileController, ProfileView),
}


# ---------------- Main app ----------------
async def main(page: ft.Page):
    page.title = "FleetTrack"
    page.theme_mode = ft.ThemeMode.DARK

    notify = make_notifier(page)
    # browser runs keep the session in localStorage, desktop runs in a JSON file
    storage = ClientStorage(page.client_storage) if page.web else JsonFileStorage(settings.storage_path)
    client = ApiClient(settings.api_base_url, storage, timeout=settings.request_timeout)
    api = FleetApi(client)
    store = SessionStore(storage, api.verify_token, navigate=page.go, notify=notify)
    client.on_auth_failure = store.handle_auth_failure
    geocoder = Geocoder(settings.geocoder_url, settings.admin_contact)
    heartbeat = SessionHeartbeat(store, settings.verify_interval_seconds)

    def on_state(state: GuardState, path: str):
        if state == GuardState.VERIFYING:
            page.views.clear()
            page.views.append(
                ft.View(
                    path,
                    [ft.Column([ft.ProgressRing(), ft.Text("Verifying session...")], horizontal_alignment=ft.CrossAxisAlignment.CENTER)],
                    vertical_alignment=ft.MainAxisAlignment.CENTER,
                    horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                )
            )
            page.update()

    guard = RouteGuard(store, settings.verify_interval_seconds, notify=notify, on_state=on_state)
    store.subscribe(lambda session: heartbeat.start() if session else None)

    current = {"view": None}

    def logout(e=None):
        store.logout()

    def shell(path: str, body: ft.Control) -> ft.Control:
        items = NAV_ITEMS[store.role]
        paths = [p for p, _ in items]
        rail = ft.NavigationRail(
            selected_index=paths.index(path) if path in paths else None,
            label_type=ft.NavigationRailLabelType.ALL,
            min_width=100,
            leading=ft.Column(
                [ft.Icon(ft.Icons.LOCAL_SHIPPING, size=28), ft.Text(store.session.display_name, size=12)],
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            destinations=[
                ft.NavigationRailDestination(icon=NAV_ICONS.get(p, ft.Icons.CIRCLE), label=label) for p, label in items
            ],
            trailing=ft.IconButton(ft.Icons.LOGOUT, tooltip="Logout", on_click=logout),
            on_change=lambda e: page.go(paths[e.control.selected_index]),
        )
        return ft.Row(
            [rail, ft.VerticalDivider(width=1), ft.Container(body, expand=True, padding=16)],
            expand=True,
        )

    def not_found(path: str) -> ft.View:
        back = "/" if store.authenticated else LOGIN_PATH
        return ft.View(
            path,
            [
                ft.Text("404", size=48, weight=ft.FontWeight.BOLD),
                ft.Text("Page not found."),
                ft.TextButton("Go back", on_click=lambda e: page.go(back)),
            ],
            vertical_alignment=ft.MainAxisAlignment.CENTER,
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        )

    async def route_change(e=None):
        decision = await guard.evaluate(page.route)
        if decision.state == GuardState.SUPERSEDED:
            return
        if decision.redirect_to:
            # logout() during verification has already navigated there
            target = decision.pending_redirect(page.route)
            if target:
                page.go(target)
            return

        if current["view"] is not None:
            current["view"].dispose()
            current["view"] = None

        page.views.clear()
        if decision.state == GuardState.NOT_FOUND:
            page.views.append(not_found(decision.path))
            page.update()
            return

        if decision.path == LOGIN_PATH:
            login = LoginController(
                api, store, guard, page.go, notify=notify, slow_after=settings.slow_login_notice_seconds
            )
            view = LoginView(page, login)
            page.views.append(ft.View(LOGIN_PATH, [view.build()]))
        else:
            controller_cls, view_cls = PAGES[decision.path]
            kwargs = {"geocoder": geocoder} if controller_cls is AssignmentsController else {}
            controller = controller_cls(api, store, notify=notify, **kwargs)
            view = view_cls(page, controller)
            page.views.append(ft.View(decision.path, [shell(decision.path, view.build())], padding=0))

        current["view"] = view
        page.update()
        await view.load()

    async def on_disconnect(e):
        await heartbeat.stop()
        await client.aclose()
        await geocoder.aclose()

    page.on_route_change = route_change
    page.on_disconnect = on_disconnect

    await store.restore_from_storage()
    page.go(page.route or "/")


def run():
    load_dotenv()
    configure_logging(settings.log_level)
    view = getattr(ft.AppView, "WINDOW", None) or getattr(ft.AppView, "FLET_APP", None)
    ft.app(target=main, view=view if view else None)


# ---- Flet App bootstrap ----
if __name__ == "__main__":
    run()
