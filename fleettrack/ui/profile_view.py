# fleettrack/ui/profile_view.py
import flet as ft

from fleettrack.pages.driver_profile import DriverProfileController
from fleettrack.ui.base_view import PageView, status_chip


def field(label: str, value) -> ft.Control:
    return ft.Row([ft.Text(label, width=140, color=ft.Colors.GREY_400), ft.Text(str(value) if value not in (None, "") else "-")])


class ProfileView(PageView):
    controller: DriverProfileController

    def __init__(self, page: ft.Page, controller: DriverProfileController):
        super().__init__(page, controller)
        self.body = ft.Column(spacing=8)

    def build(self) -> ft.Control:
        return ft.Column([self.header("My Profile"), self.body], scroll=ft.ScrollMode.AUTO, expand=True)

    def render(self):
        c = self.controller
        p = c.profile
        if p is None:
            if c.loading:
                self.body.controls = []
                return
            self.body.controls = [
                ft.Card(
                    content=ft.Container(
                        padding=20,
                        content=ft.Column(
                            [
                                ft.Icon(ft.Icons.ERROR_OUTLINE, color=ft.Colors.RED_400, size=36),
                                ft.Text(c.error or "Profile unavailable."),
                                ft.ElevatedButton("Retry", on_click=lambda e: self.page.run_task(c.retry)),
                            ],
                            tight=True,
                        ),
                    )
                )
            ]
            # the card already shows the message
            self.error_text.visible = False
            return

        rows = [
            ft.Row([ft.CircleAvatar(content=ft.Text((p.name or p.username or "?")[:1].upper())), ft.Text(p.name or p.username, size=20)]),
            field("Username", p.username),
            field("Email", p.email),
            field("Phone", p.phone),
            field("Role", p.role.value),
            field("Member since", p.created_date),
        ]
        if p.is_driver:
            rows += [
                ft.Divider(),
                field("License", p.license_number),
                ft.Row([ft.Text("Status", width=140, color=ft.Colors.GREY_400), status_chip(p.status)]),
                field("Total trips", p.total_trips),
                field("Rating", f"{p.rating:.1f}"),
            ]
            v = p.assigned_vehicle
            rows.append(ft.Divider())
            if v is None:
                rows.append(ft.Text("No vehicle assigned."))
            else:
                rows += [
                    ft.Text("Assigned Vehicle", size=16, weight=ft.FontWeight.W_600),
                    field("Vehicle", v.label()),
                    field("Type", v.type),
                    field("Capacity", v.capacity),
                    field("Status", v.status),
                    field("Last service", v.last_service_date),
                    field("Next service", v.next_service_date),
                ]
        self.body.controls = rows
