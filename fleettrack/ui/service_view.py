# fleettrack/ui/service_view.py
from datetime import date
from typing import Optional

import flet as ft

from fleettrack.pages.assignments import ALL
from fleettrack.pages.service import SERVICE_TYPES, ServiceController, ServiceForm
from fleettrack.services.resources import ServiceRecord, ServiceStatus
from fleettrack.ui.base_view import PageView, options, status_chip


def parse_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat((text or "").strip())
    except ValueError:
        return None


def parse_amount(text: str) -> Optional[float]:
    try:
        return float(text) if (text or "").strip() else None
    except ValueError:
        return None


class ServiceView(PageView):
    controller: ServiceController

    def __init__(self, page: ft.Page, controller: ServiceController):
        super().__init__(page, controller)
        self.counters = ft.Row()
        self.overdue = ft.Column()
        self.cards = ft.Column()
        self.dialog: Optional[ft.AlertDialog] = None

    def build(self) -> ft.Control:
        c = self.controller
        actions = []
        if c.is_admin:
            actions.append(ft.ElevatedButton("Add Service", icon=ft.Icons.ADD, on_click=lambda e: self.open_editor()))
        filters = ft.Row(
            [
                ft.TextField(
                    label="Search plate or service", width=260, on_change=lambda e: c.set_filters(query=e.control.value)
                ),
                ft.Dropdown(
                    label="Status",
                    width=160,
                    value=ALL,
                    options=options([(ALL, "All")] + [(s.value, s.value.title()) for s in ServiceStatus]),
                    on_change=lambda e: c.set_filters(status=e.control.value),
                ),
                ft.Dropdown(
                    label="Type",
                    width=200,
                    value=ALL,
                    options=options([(ALL, "All")] + [(t, t) for t in SERVICE_TYPES]),
                    on_change=lambda e: c.set_filters(service_type=e.control.value),
                ),
            ],
            wrap=True,
        )
        title = "Service" if c.is_admin else "Vehicle Status"
        return ft.Column(
            [self.header(title, *actions), self.counters, self.overdue, filters, self.cards],
            scroll=ft.ScrollMode.AUTO,
            expand=True,
        )

    def render(self):
        c = self.controller
        n = c.counters()
        self.counters.controls = [
            ft.Chip(label=ft.Text(f"Pending: {n['pending']}")),
            ft.Chip(label=ft.Text(f"Overdue: {n['overdue']}")),
            ft.Chip(label=ft.Text(f"Completed: {n['completed']}")),
        ]
        overdue = c.overdue()
        self.overdue.controls = (
            [ft.Text("Overdue", color=ft.Colors.RED_400, weight=ft.FontWeight.BOLD)]
            + [ft.Text(f"{r.registration_number or '-'}  {r.service_name}  due {r.next_service_date or '-'}") for r in overdue]
            if overdue
            else []
        )
        rows = c.visible()
        self.cards.controls = [self._card(r) for r in rows] or [ft.Text("No service records.")]

    def _card(self, r: ServiceRecord) -> ft.Control:
        trailing = None
        if self.controller.is_admin:
            trailing = ft.Row(
                [
                    ft.IconButton(ft.Icons.EDIT, on_click=lambda e, r=r: self.open_editor(r)),
                    ft.IconButton(
                        ft.Icons.DELETE, on_click=lambda e, r=r: self.page.run_task(self.controller.delete, r.id)
                    ),
                ],
                tight=True,
            )
        return ft.Card(
            content=ft.ListTile(
                leading=status_chip(r.status.value),
                title=ft.Text(f"{r.service_name}  ·  {r.registration_number or '-'}"),
                subtitle=ft.Text(
                    f"Serviced {r.service_date or '-'}   Next due {r.next_service_date or '-'}   "
                    f"Amount {r.amount:.2f}\n{r.notes}"
                ),
                trailing=trailing,
            )
        )

    def open_editor(self, r: Optional[ServiceRecord] = None):
        c = self.controller
        form = ServiceForm.from_record(r) if r else ServiceForm()

        vehicle_dd = ft.Dropdown(
            label="Vehicle", value=form.vehicle_id, options=options((v.id, v.label()) for v in c.vehicles if v.id)
        )
        name_tf = ft.TextField(label="Service name", value=form.service_name)
        date_tf = ft.TextField(label="Service date (YYYY-MM-DD)", value=form.service_date.isoformat() if form.service_date else "")
        next_tf = ft.TextField(
            label="Next service date (YYYY-MM-DD)",
            value=form.next_service_date.isoformat() if form.next_service_date else "",
        )
        amount_tf = ft.TextField(label="Amount", value=str(form.amount) if form.amount else "")
        notes_tf = ft.TextField(label="Notes", value=form.notes, multiline=True)
        status_dd = ft.Dropdown(
            label="Status", value=form.status.value, options=options((s.value, s.value.title()) for s in ServiceStatus)
        )

        async def save(e):
            form.vehicle_id = vehicle_dd.value
            form.service_name = name_tf.value or ""
            form.service_date = parse_date(date_tf.value)
            form.next_service_date = parse_date(next_tf.value)
            form.amount = parse_amount(amount_tf.value)
            form.notes = notes_tf.value or ""
            form.status = ServiceStatus.parse(status_dd.value)
            ok = await (c.update(r.id, form) if r else c.create(form))
            if ok:
                self.page.close(self.dialog)

        self.dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text("Update Service" if r else "Add Service"),
            content=ft.Column(
                [vehicle_dd, name_tf, date_tf, next_tf, amount_tf, status_dd, notes_tf], tight=True, width=420
            ),
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: self.page.close(self.dialog)),
                ft.ElevatedButton("Save", on_click=save),
            ],
        )
        self.page.open(self.dialog)
