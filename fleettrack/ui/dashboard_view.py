# fleettrack/ui/dashboard_view.py
import flet as ft

from fleettrack.pages.dashboard import DashboardController
from fleettrack.ui.base_view import PageView, status_chip


def stat_card(label: str, value: int) -> ft.Control:
    return ft.Card(
        content=ft.Container(
            padding=16,
            width=200,
            content=ft.Column([ft.Text(label, size=12), ft.Text(str(value), size=28, weight=ft.FontWeight.BOLD)]),
        )
    )


class DashboardView(PageView):
    controller: DashboardController

    def __init__(self, page: ft.Page, controller: DashboardController):
        super().__init__(page, controller)
        self.stats = ft.Row(wrap=True)
        self.recent = ft.DataTable(
            columns=[
                ft.DataColumn(ft.Text("Assignment")),
                ft.DataColumn(ft.Text("Vehicle")),
                ft.DataColumn(ft.Text("Driver")),
                ft.DataColumn(ft.Text("Status")),
            ],
            rows=[],
        )
        self.in_service = ft.Column()

    def build(self) -> ft.Control:
        return ft.Column(
            [
                self.header("Dashboard", ft.IconButton(ft.Icons.REFRESH, on_click=lambda e: self.page.run_task(self.load))),
                self.stats,
                ft.Text("Recent Assignments", size=16, weight=ft.FontWeight.W_600),
                self.recent,
                ft.Divider(),
                ft.Text("Vehicles In Service", size=16, weight=ft.FontWeight.W_600),
                self.in_service,
            ],
            scroll=ft.ScrollMode.AUTO,
            expand=True,
        )

    def render(self):
        summary = self.controller.summary
        self.stats.controls = [stat_card(label, n) for label, n in self.controller.stats()]
        if summary is None:
            return
        self.recent.rows = [
            ft.DataRow(
                cells=[
                    ft.DataCell(ft.Text(a.name or "-")),
                    ft.DataCell(ft.Text(a.vehicle.registration_number if a.vehicle else "-")),
                    ft.DataCell(ft.Text(a.driver.name if a.driver else "-")),
                    ft.DataCell(status_chip(a.status.value)),
                ]
            )
            for a in summary.recent_assignments()
        ]
        vehicles = summary.vehicles_in_service
        self.in_service.controls = [
            ft.ListTile(
                leading=ft.Icon(ft.Icons.BUILD),
                title=ft.Text(v.label()),
                subtitle=ft.Text(f"Next service: {v.next_service_date or '-'}"),
            )
            for v in vehicles
        ] or [ft.Text("No vehicles in service.")]
