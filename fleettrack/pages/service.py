# fleettrack/pages/service.py
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fleettrack.core.errors import FormError
from fleettrack.core.notify import Notice
from fleettrack.pages.assignments import ALL, ref_id
from fleettrack.pages.base import PageController
from fleettrack.services.resources import ServiceRecord, ServiceStatus, Vehicle

SERVICE_TYPES = ["Oil Change", "Tire Rotation", "Brake Inspection", "Engine Check", "General Maintenance"]


@dataclass
class ServiceForm:
    vehicle_id: Optional[str] = None
    service_name: str = ""
    service_date: Optional[date] = None
    next_service_date: Optional[date] = None
    notes: str = ""
    amount: Optional[float] = None
    status: ServiceStatus = ServiceStatus.PENDING

    @classmethod
    def from_record(cls, r: ServiceRecord) -> "ServiceForm":
        return cls(
            vehicle_id=r.vehicle.id if r.vehicle else None,
            service_name=r.service_name,
            service_date=r.service_date,
            next_service_date=r.next_service_date,
            notes=r.notes,
            amount=r.amount,
            status=r.status,
        )

    def validate(self) -> None:
        if not self.vehicle_id or not self.service_name.strip() or self.service_date is None:
            raise FormError("Missing fields", "Please fill in vehicle, service name and service date.")

    def payload(self) -> dict:
        next_date = self.next_service_date or self.service_date
        return {
            "vehicle": {"id": ref_id(self.vehicle_id)},
            "serviceName": self.service_name.strip(),
            "serviceDate": self.service_date.isoformat(),
            "nextServiceDate": next_date.isoformat(),
            "notes": self.notes,
            "amount": self.amount or 0,
            "status": self.status.value,
        }


class ServiceController(PageController):
    title = "Service"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.records: list[ServiceRecord] = []
        self.vehicles: list[Vehicle] = []
        self.query = ""
        self.status_filter = ALL
        self.type_filter = ALL

    async def fetch(self) -> None:
        ok, records = await self.call(self.api.list_services(), "Could not load service records")
        self.records = records if ok else []
        ok, vehicles = await self.call(self.api.fleet_vehicles(), "Could not load vehicles")
        self.vehicles = vehicles if ok else []

    def set_filters(
        self, query: Optional[str] = None, status: Optional[str] = None, service_type: Optional[str] = None
    ) -> None:
        if query is not None:
            self.query = query
        if status is not None:
            self.status_filter = status
        if service_type is not None:
            self.type_filter = service_type
        self.changed()

    def visible(self) -> list[ServiceRecord]:
        q = self.query.strip().lower()
        out = []
        for r in self.records:
            if q and q not in r.registration_number.lower() and q not in r.service_name.lower():
                continue
            if self.status_filter != ALL and r.status.value != self.status_filter:
                continue
            if self.type_filter != ALL and self.type_filter.lower() not in r.service_name.lower():
                continue
            out.append(r)
        return out

    def counters(self) -> dict[str, int]:
        statuses = [r.status for r in self.records]
        return {
            "pending": sum(1 for s in statuses if s in (ServiceStatus.PENDING, ServiceStatus.OVERDUE)),
            "overdue": statuses.count(ServiceStatus.OVERDUE),
            "completed": statuses.count(ServiceStatus.COMPLETED),
        }

    def overdue(self) -> list[ServiceRecord]:
        return [r for r in self.records if r.status == ServiceStatus.OVERDUE]

    async def create(self, form: ServiceForm) -> bool:
        if not self.require_admin():
            return False
        try:
            form.validate()
        except FormError as ex:
            return self.reject(ex)
        ok, _ = await self.call(self.api.create_service(form.payload()), "Could not add service record")
        if ok:
            self.notify(Notice("Service record added", form.service_name.strip(), "success"))
            await self.load()
        return ok

    async def update(self, service_id: str, form: ServiceForm) -> bool:
        if not self.require_admin():
            return False
        try:
            form.validate()
        except FormError as ex:
            return self.reject(ex)
        ok, _ = await self.call(self.api.update_service(service_id, form.payload()), "Could not update service record")
        if ok:
            self.notify(Notice("Service record updated", form.service_name.strip(), "success"))
            await self.load()
        return ok

    async def delete(self, service_id: str) -> bool:
        if not self.require_admin():
            return False
        ok, _ = await self.call(self.api.delete_service(service_id), "Could not delete service record")
        if ok:
            self.notify(Notice("Service record deleted", "", "success"))
            await self.load()
        return ok
