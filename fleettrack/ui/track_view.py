# fleettrack/ui/track_view.py
import flet as ft

from fleettrack.pages.track import TrackController
from fleettrack.ui.base_view import PageView
from fleettrack.ui.map_view import FleetMap


class TrackView(PageView):
    controller: TrackController

    def __init__(self, page: ft.Page, controller: TrackController):
        super().__init__(page, controller)
        self.map = FleetMap()
        self.search_tf = ft.TextField(
            label="Search vehicle, plate or driver", expand=True, on_submit=self.do_search
        )
        self.results = ft.Column(scroll=ft.ScrollMode.AUTO, height=220, visible=False)
        self.details = ft.Column()
        self.btn_all = ft.OutlinedButton("View All Vehicles", on_click=lambda e: self.controller.toggle_view_all())
        self._last_focus = None

    async def do_search(self, e=None):
        await self.controller.search(self.search_tf.value or "")

    def clear(self, e=None):
        self.search_tf.value = ""
        self.controller.clear_search()

    async def pick_driver(self, driver):
        await self.controller.select_driver(driver)

    def build(self) -> ft.Control:
        panel = ft.Container(
            width=340,
            padding=10,
            content=ft.Column(
                [
                    self.header("Track"),
                    ft.Row(
                        [
                            self.search_tf,
                            ft.IconButton(ft.Icons.SEARCH, on_click=self.do_search),
                            ft.IconButton(ft.Icons.CLEAR, on_click=self.clear),
                        ]
                    ),
                    self.btn_all,
                    self.results,
                    ft.Divider(),
                    self.details,
                ],
                scroll=ft.ScrollMode.AUTO,
            ),
        )
        return ft.Row([panel, ft.VerticalDivider(width=1), ft.Container(self.map.control, expand=True)], expand=True)

    def render(self):
        c = self.controller
        self.btn_all.text = "Hide All Vehicles" if c.view_all else "View All Vehicles"

        items = []
        if c.results is not None:
            for v in c.results.vehicles:
                items.append(
                    ft.ListTile(
                        leading=ft.Icon(ft.Icons.DIRECTIONS_CAR),
                        title=ft.Text(v.label()),
                        subtitle=ft.Text(v.location_status or "-"),
                        on_click=lambda e, v=v: c.select_vehicle(v),
                    )
                )
            for d in c.results.drivers:
                items.append(
                    ft.ListTile(
                        leading=ft.Icon(ft.Icons.PERSON),
                        title=ft.Text(d.name or d.username),
                        subtitle=ft.Text(d.assigned_vehicle_registration or "No vehicle"),
                        on_click=lambda e, d=d: self.page.run_task(self.pick_driver, d),
                    )
                )
            if not items:
                items = [ft.Text("No results.")]
        self.results.controls = items
        self.results.visible = c.results is not None

        v = c.selected
        if v is None:
            self.details.controls = [ft.Text(f"{len(c.vehicles)} vehicles on the map.")]
        else:
            flag = "Untracked" if v.location_status == "UNTRACKED" else "Tracked"
            self.details.controls = [
                ft.Text(v.label(), size=16, weight=ft.FontWeight.W_600),
                ft.Text(f"Type: {v.type or '-'}   Status: {v.status or '-'}"),
                ft.Text(f"Location: {v.current_location or '-'} ({flag})"),
                ft.Text(f"Driver: {v.assigned_driver.name if v.assigned_driver else '-'}"),
                ft.Text(f"Fuel: {v.fuel_level:.0f}%   Mileage: {v.mileage:.0f} km"),
                ft.Row(
                    [
                        ft.ElevatedButton("End Track", on_click=lambda e: c.end_tracking())
                        if c.tracking
                        else ft.ElevatedButton("Track", on_click=lambda e: c.start_tracking()),
                        ft.IconButton(ft.Icons.REFRESH, on_click=lambda e: self.page.run_task(c.refresh_selected)),
                    ]
                ),
            ]

        self.map.set_markers(c.markers())
        focus = c.focus()
        if focus and focus != self._last_focus:
            self._last_focus = focus
            self.map.move_to(*focus)
