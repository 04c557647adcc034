# fleettrack/ui/profiles_view.py
from typing import Optional

import flet as ft

from fleettrack.core.policy import Role
from fleettrack.pages.assignments import ALL
from fleettrack.pages.profiles import (
    DRIVER_STATUSES,
    TABS,
    VEHICLE_STATUSES,
    VEHICLE_TYPES,
    ProfilesController,
    UserForm,
    VehicleForm,
)
from fleettrack.ui.base_view import PageView, options, status_chip


class ProfilesView(PageView):
    controller: ProfilesController

    def __init__(self, page: ft.Page, controller: ProfilesController):
        super().__init__(page, controller)
        self.search_tf = ft.TextField(
            label="Search", width=260, on_change=lambda e: self.controller.set_filters(query=e.control.value)
        )
        self.filter_dd = ft.Dropdown(label="Filter", width=180, value=ALL, on_change=self.on_filter)
        self.tabs = ft.Tabs(
            selected_index=0,
            on_change=self.on_tab,
            tabs=[ft.Tab(text="Users"), ft.Tab(text="Drivers"), ft.Tab(text="Vehicles")],
        )
        self.table = ft.DataTable(columns=[ft.DataColumn(ft.Text(""))], rows=[])
        self.dialog: Optional[ft.AlertDialog] = None

    def on_tab(self, e):
        self.search_tf.value = ""
        self.filter_dd.value = ALL
        self.controller.select_tab(TABS[self.tabs.selected_index])

    def on_filter(self, e):
        tab = self.controller.tab
        if tab == "users":
            self.controller.set_filters(role=e.control.value)
        elif tab == "drivers":
            self.controller.set_filters(status=e.control.value)
        else:
            self.controller.set_filters(vehicle_type=e.control.value)

    def build(self) -> ft.Control:
        return ft.Column(
            [
                self.header(
                    "Fleet Profiles",
                    ft.ElevatedButton("Add User", icon=ft.Icons.PERSON_ADD, on_click=lambda e: self.open_user_editor()),
                    ft.ElevatedButton("Add Vehicle", icon=ft.Icons.ADD, on_click=lambda e: self.open_vehicle_editor()),
                ),
                self.tabs,
                ft.Row([self.search_tf, self.filter_dd]),
                ft.Row([self.table], scroll=ft.ScrollMode.AUTO),
            ],
            scroll=ft.ScrollMode.AUTO,
            expand=True,
        )

    # ---------- table ----------
    def _actions(self, kind: str, row_id: Optional[str], edit) -> ft.DataCell:
        return ft.DataCell(
            ft.Row(
                [
                    ft.IconButton(ft.Icons.EDIT, on_click=lambda e: edit()),
                    ft.IconButton(
                        ft.Icons.DELETE, on_click=lambda e: self.page.run_task(self.controller.delete, kind, row_id)
                    ),
                ]
            )
        )

    def render(self):
        c = self.controller
        if c.tab == "users":
            self.filter_dd.options = options([(ALL, "All roles")] + [(r.value, r.value.title()) for r in Role])
            cols = ["Name", "Username", "Email", "Phone", "Role", ""]
            rows = [
                [
                    ft.DataCell(ft.Text(u.name)),
                    ft.DataCell(ft.Text(u.username)),
                    ft.DataCell(ft.Text(u.email)),
                    ft.DataCell(ft.Text(u.phone)),
                    ft.DataCell(status_chip(u.role.value)),
                    self._actions(
                        "users", u.id,
                        lambda u=u: self.open_changes("users", u.id, {"name": u.name, "mailId": u.email, "phoneNumber": u.phone}),
                    ),
                ]
                for u in c.visible_users()
            ]
        elif c.tab == "drivers":
            self.filter_dd.options = options([(ALL, "All statuses")] + [(s, s.replace("_", " ").title()) for s in DRIVER_STATUSES])
            cols = ["Name", "Phone", "License", "Vehicle", "Trips", "Rating", "Status", ""]
            rows = [
                [
                    ft.DataCell(ft.Text(d.name or d.username)),
                    ft.DataCell(ft.Text(d.phone)),
                    ft.DataCell(ft.Text(d.license_number or "-")),
                    ft.DataCell(ft.Text(d.assigned_vehicle_registration or "-")),
                    ft.DataCell(ft.Text(str(d.total_trips))),
                    ft.DataCell(ft.Text(f"{d.rating:.1f}")),
                    ft.DataCell(status_chip(d.status)),
                    self._actions(
                        "drivers", d.id,
                        lambda d=d: self.open_changes("drivers", d.id, {"name": d.name, "phoneNumber": d.phone, "status": d.status}),
                    ),
                ]
                for d in c.visible_drivers()
            ]
        else:
            self.filter_dd.options = options([(ALL, "All types")] + [(t, t.title()) for t in VEHICLE_TYPES])
            cols = ["Name", "Registration", "Model", "Type", "Capacity", "Status", "Next Service", ""]
            rows = [
                [
                    ft.DataCell(ft.Text(v.name)),
                    ft.DataCell(ft.Text(v.registration_number)),
                    ft.DataCell(ft.Text(v.model or "-")),
                    ft.DataCell(ft.Text(v.type or "-")),
                    ft.DataCell(ft.Text(str(v.capacity))),
                    ft.DataCell(status_chip(v.status)),
                    ft.DataCell(ft.Text(str(v.next_service_date or "-"))),
                    self._actions(
                        "vehicles", v.id,
                        lambda v=v: self.open_changes("vehicles", v.id, {"vehicleName": v.name, "model": v.model, "status": v.status}),
                    ),
                ]
                for v in c.visible_vehicles()
            ]
        self.table.columns = [ft.DataColumn(ft.Text(t)) for t in cols]
        self.table.rows = [ft.DataRow(cells=cells) for cells in rows]

    # ---------- dialogs ----------
    def _open(self, title: str, fields: list, on_save):
        async def save(e):
            if await on_save():
                self.page.close(self.dialog)

        self.dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text(title),
            content=ft.Column(fields, tight=True, width=420),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: self.page.close(self.dialog)),
                ft.ElevatedButton("Save", on_click=save),
            ],
        )
        self.page.open(self.dialog)

    def open_user_editor(self):
        username = ft.TextField(label="Username")
        password = ft.TextField(label="Password", password=True, can_reveal_password=True)
        name = ft.TextField(label="Full name")
        email = ft.TextField(label="Email")
        phone = ft.TextField(label="Phone")
        role = ft.Dropdown(label="Role", value=Role.DRIVER.value, options=options((r.value, r.value.title()) for r in Role))

        async def on_save():
            form = UserForm(
                username=username.value or "",
                password=password.value or "",
                name=name.value or "",
                email=email.value or "",
                phone=phone.value or "",
                role=Role.parse(role.value),
            )
            return await self.controller.create_user(form)

        self._open("Add User", [username, password, name, email, phone, role], on_save)

    def open_vehicle_editor(self):
        name = ft.TextField(label="Vehicle name")
        reg = ft.TextField(label="Registration number")
        model = ft.TextField(label="Model")
        vtype = ft.Dropdown(label="Type", value="CAR", options=options((t, t.title()) for t in VEHICLE_TYPES))
        capacity = ft.TextField(label="Capacity", value="4", keyboard_type=ft.KeyboardType.NUMBER)
        status = ft.Dropdown(label="Status", value="ACTIVE", options=options((s, s.title()) for s in VEHICLE_STATUSES))

        async def on_save():
            cap = capacity.value or ""
            form = VehicleForm(
                name=name.value or "",
                registration_number=reg.value or "",
                model=model.value or "",
                type=vtype.value or "CAR",
                capacity=int(cap) if cap.isdigit() else 4,
                status=status.value or "ACTIVE",
            )
            return await self.controller.create_vehicle(form)

        self._open("Add Vehicle", [name, reg, model, vtype, capacity, status], on_save)

    def open_changes(self, kind: str, row_id: Optional[str], current: dict):
        """Edit the plain string fields of one row; keys are the backend's."""
        fields = {k: ft.TextField(label=k, value=v or "") for k, v in current.items()}

        async def on_save():
            changes = {k: tf.value or "" for k, tf in fields.items()}
            return await self.controller.update(kind, row_id, changes)

        self._open(f"Edit {kind[:-1]}", list(fields.values()), on_save)
