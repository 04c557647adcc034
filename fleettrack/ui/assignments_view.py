# fleettrack/ui/assignments_view.py
from typing import Optional

import flet as ft

from fleettrack.pages.assignments import ALL, AssignmentForm, AssignmentsController
from fleettrack.services.resources import Assignment, AssignmentStatus
from fleettrack.ui.base_view import PageView, options, status_chip
from fleettrack.ui.map_view import FleetMap


class AssignmentsView(PageView):
    controller: AssignmentsController

    def __init__(self, page: ft.Page, controller: AssignmentsController):
        super().__init__(page, controller)
        self.search_tf = ft.TextField(
            label="Search name or location",
            width=300,
            on_change=lambda e: self.controller.set_filters(query=e.control.value),
        )
        self.status_dd = ft.Dropdown(
            label="Status",
            width=180,
            value=ALL,
            options=options([(ALL, "All")] + [(s.value, s.value.replace("_", " ").title()) for s in AssignmentStatus]),
            on_change=lambda e: self.controller.set_filters(status=e.control.value),
        )
        self.counts = ft.Text("")
        self.table = ft.DataTable(
            columns=[
                ft.DataColumn(ft.Text("Name")),
                ft.DataColumn(ft.Text("Vehicle")),
                ft.DataColumn(ft.Text("Driver")),
                ft.DataColumn(ft.Text("From")),
                ft.DataColumn(ft.Text("To")),
                ft.DataColumn(ft.Text("Distance")),
                ft.DataColumn(ft.Text("Status")),
                ft.DataColumn(ft.Text("")),
            ],
            rows=[],
        )

        # editor dialog state
        self.form = AssignmentForm()
        self.editing_id: Optional[str] = None
        self.dialog: Optional[ft.AlertDialog] = None

    def build(self) -> ft.Control:
        actions = []
        if self.controller.is_admin:
            actions.append(ft.ElevatedButton("New Assignment", icon=ft.Icons.ADD, on_click=lambda e: self.open_editor()))
        title = "Assignments" if self.controller.is_admin else "My Assignments"
        return ft.Column(
            [
                self.header(title, *actions),
                ft.Row([self.search_tf, self.status_dd, self.counts]),
                ft.Row([self.table], scroll=ft.ScrollMode.AUTO),
            ],
            scroll=ft.ScrollMode.AUTO,
            expand=True,
        )

    def render(self):
        c = self.controller
        counts = c.counts()
        self.counts.value = "   ".join(f"{k.replace('_', ' ').title()}: {n}" for k, n in counts.items())
        self.table.rows = [self._row(a) for a in c.visible()]

    def _row(self, a: Assignment) -> ft.DataRow:
        buttons = []
        if self.controller.is_admin:
            buttons = [
                ft.IconButton(ft.Icons.EDIT, tooltip="Edit", on_click=lambda e, a=a: self.open_editor(a)),
                ft.IconButton(
                    ft.Icons.DELETE, tooltip="Delete", on_click=lambda e, a=a: self.page.run_task(self.controller.delete, a.id)
                ),
            ]
        distance = f"{a.route_distance:.1f} km" if a.route_distance else "-"
        return ft.DataRow(
            cells=[
                ft.DataCell(ft.Text(a.name or "-")),
                ft.DataCell(ft.Text(a.vehicle.registration_number or a.vehicle.name if a.vehicle else "-")),
                ft.DataCell(ft.Text(a.driver.name or a.driver.username if a.driver else "-")),
                ft.DataCell(ft.Text(a.start_location or "-")),
                ft.DataCell(ft.Text(a.drop_location or "-")),
                ft.DataCell(ft.Text(distance)),
                ft.DataCell(status_chip(a.status.value)),
                ft.DataCell(ft.Row(buttons)),
            ]
        )

    # ---------- editor ----------
    def open_editor(self, a: Optional[Assignment] = None):
        c = self.controller
        self.form = AssignmentForm.from_assignment(a) if a else AssignmentForm()
        self.editing_id = a.id if a else None

        name_tf = ft.TextField(label="Assignment name", value=self.form.name)
        vehicle_dd = ft.Dropdown(
            label="Vehicle", value=self.form.vehicle_id, options=options((v.id, v.label()) for v in c.vehicles if v.id)
        )
        driver_dd = ft.Dropdown(
            label="Driver",
            value=self.form.driver_id,
            options=options((d.id, d.name or d.username) for d in c.drivers if d.id),
        )
        status_dd = ft.Dropdown(
            label="Status",
            value=self.form.status.value,
            options=options((s.value, s.value.replace("_", " ").title()) for s in AssignmentStatus),
        )
        start_tf = ft.TextField(label="Start location", value=self.form.start_location, expand=True)
        drop_tf = ft.TextField(label="Drop location", value=self.form.drop_location, expand=True)
        target = ft.RadioGroup(
            value="start",
            content=ft.Row([ft.Radio(value="start", label="Map click sets start"), ft.Radio(value="drop", label="Map click sets drop")]),
        )

        def show_pins():
            pins = []
            if self.form.start and self.form.start.valid:
                pins.append((self.form.start.lat, self.form.start.lng, ft.Colors.GREEN_400))
            if self.form.end and self.form.end.valid:
                pins.append((self.form.end.lat, self.form.end.lng, ft.Colors.RED_400))
            picker.set_pins(pins)
            start_tf.value = self.form.start_location
            drop_tf.value = self.form.drop_location
            self.page.update()

        async def find(which: str, tf: ft.TextField):
            if await c.locate(self.form, which, tf.value or ""):
                show_pins()
                point = self.form.start if which == "start" else self.form.end
                picker.move_to(point.lat, point.lng)

        async def picked(lat: float, lng: float):
            await c.pick_on_map(self.form, target.value, lat, lng)
            show_pins()

        picker = FleetMap(on_pick=lambda lat, lng: self.page.run_task(picked, lat, lng), height=260)

        async def save(e):
            self.form.name = name_tf.value or ""
            self.form.vehicle_id = vehicle_dd.value
            self.form.driver_id = driver_dd.value
            self.form.status = AssignmentStatus.parse(status_dd.value)
            # typed edits win over the last geocoded label
            self.form.start_location = start_tf.value or ""
            self.form.drop_location = drop_tf.value or ""
            if self.editing_id:
                ok = await c.update(self.editing_id, self.form)
            else:
                ok = await c.create(self.form)
            if ok:
                self.page.close(self.dialog)

        self.dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text("Edit Assignment" if a else "New Assignment"),
            content=ft.Container(
                width=640,
                content=ft.Column(
                    [
                        name_tf,
                        ft.Row([ft.Container(vehicle_dd, expand=True), ft.Container(driver_dd, expand=True)]),
                        status_dd,
                        ft.Row([start_tf, ft.IconButton(ft.Icons.SEARCH, on_click=lambda e: self.page.run_task(find, "start", start_tf))]),
                        ft.Row([drop_tf, ft.IconButton(ft.Icons.SEARCH, on_click=lambda e: self.page.run_task(find, "drop", drop_tf))]),
                        target,
                        picker.control,
                    ],
                    tight=True,
                    scroll=ft.ScrollMode.AUTO,
                ),
            ),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: self.page.close(self.dialog)),
                ft.ElevatedButton("Save", on_click=save),
            ],
        )
        self.page.open(self.dialog)
        show_pins()
