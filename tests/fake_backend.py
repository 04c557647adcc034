# tests/fake_backend.py
"""In-process stand-in for the FleetTrack REST API, served through httpx.ASGITransport."""
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Form, Header, HTTPException, Request
from fastapi.responses import JSONResponse


class FakeBackend:
    def __init__(self):
        self.users = {
            1: {"id": 1, "username": "admin", "password": "admin123", "name": "Ada Admin",
                "mailId": "ada@fleet.test", "phoneNumber": "555-0100", "role": "ADMIN", "status": "ACTIVE"},
            2: {"id": 2, "username": "driver", "password": "driver123", "name": "Dan Driver",
                "mailId": "dan@fleet.test", "phoneNumber": "555-0101", "role": "DRIVER", "status": "ON_TRIP",
                "totalTrips": 42, "ratings": 4.6, "assignedVehicleId": 10},
            3: {"id": 3, "username": "erin", "password": "erin123", "name": "Erin Wheel",
                "mailId": "erin@fleet.test", "phoneNumber": "555-0102", "role": "DRIVER", "status": "ACTIVE"},
        }
        self.vehicles = {
            10: {"id": 10, "vehicleName": "City Bus 1", "registrationNumber": "TN-01-AB-1234", "model": "Volvo 9400",
                 "type": "BUS", "capacity": 40, "status": "ACTIVE", "vehicleLocationStatus": "TRACKED",
                 "latitude": 13.0827, "longitude": 80.2707, "currentLocation": "Chennai Central",
                 "assignedDriver": {"id": 2, "name": "Dan Driver"}},
            11: {"id": 11, "vehicleName": "Hauler", "registrationNumber": "TN-02-CD-5678", "model": "Tata Prima",
                 "type": "TRUCK", "capacity": 2, "status": "MAINTENANCE", "vehicleLocationStatus": "UNTRACKED",
                 "latitude": 0.0, "longitude": 0.0},
        }
        self.assignments = {
            100: {"id": 100, "assignmentName": "Morning Route", "vehicle": {"id": 10, "vehicleName": "City Bus 1",
                  "registrationNumber": "TN-01-AB-1234"}, "driver": {"id": 2, "name": "Dan Driver"},
                  "startLocation": "Guindy", "dropLocation": "T Nagar", "routeDistance": 7.4, "status": "IN_PROGRESS"},
            101: {"id": 101, "assignmentName": "Airport Run", "vehicle": {"id": 11}, "driver": {"id": 3, "name": "Erin Wheel"},
                  "startLocation": "Adyar", "dropLocation": "Airport", "status": "COMPLETED"},
        }
        self.services = {
            200: {"id": 200, "serviceName": "Oil Change", "vehicle": {"id": 10, "registrationNumber": "TN-01-AB-1234"},
                  "serviceDate": "2024-01-10", "nextServiceDate": "2024-07-10", "amount": 120.5, "status": "COMPLETED"},
            201: {"id": 201, "serviceName": "Brake Inspection", "vehicle": {"id": 11, "registrationNumber": "TN-02-CD-5678"},
                  "serviceDate": "2024-02-01", "nextServiceDate": "2024-03-01", "amount": 0, "status": "OVERDUE"},
        }
        self.next_id = 1000
        # (method, path) -> (status, body) injected before routing
        self.failures: dict[tuple, tuple] = {}
        self.verify_status: Optional[int] = None
        self.calls: list[tuple] = []
        self.app = self._build()

    # ---------- helpers ----------
    def token_for(self, username: str) -> str:
        return f"tok-{username}"

    def _new_id(self) -> int:
        self.next_id += 1
        return self.next_id

    def _user_for(self, authorization: Optional[str]) -> Optional[dict]:
        if not authorization or not authorization.startswith("Bearer "):
            return None
        token = authorization[len("Bearer "):]
        return next((u for u in self.users.values() if self.token_for(u["username"]) == token), None)

    def _public(self, u: dict) -> dict:
        return {k: v for k, v in u.items() if k != "password"}

    def _build(self) -> FastAPI:
        app = FastAPI()
        api = APIRouter(prefix="/api")

        @app.middleware("http")
        async def record(request: Request, call_next):
            self.calls.append((request.method, request.url.path, request.headers.get("authorization")))
            injected = self.failures.get((request.method, request.url.path))
            if injected:
                status, body = injected
                return JSONResponse(body, status_code=status)
            return await call_next(request)

        def current_user(authorization: Optional[str] = Header(None)) -> dict:
            user = self._user_for(authorization)
            if user is None:
                raise HTTPException(401, "Unauthorized")
            return user

        def admin(user: dict = Depends(current_user)) -> dict:
            if user["role"] != "ADMIN":
                raise HTTPException(403, "Forbidden")
            return user

        # ---------- auth ----------
        @api.post("/auth/login")
        async def login(body: dict):
            user = next((u for u in self.users.values() if u["username"] == body.get("username")), None)
            if user is None or user["password"] != body.get("password"):
                return JSONResponse({"success": False, "message": "Invalid credentials"}, status_code=401)
            return {"success": True, "token": self.token_for(user["username"]), "username": user["username"],
                    "role": user["role"], "userId": user["id"], "name": user["name"]}

        @api.get("/auth/verify")
        async def verify(authorization: Optional[str] = Header(None)):
            if self.verify_status is not None:
                return JSONResponse({"valid": self.verify_status == 200}, status_code=self.verify_status)
            if self._user_for(authorization) is None:
                return JSONResponse({"valid": False}, status_code=401)
            return {"valid": True}

        # ---------- dashboard ----------
        @api.get("/dashboard")
        async def dashboard(user: dict = Depends(admin)):
            drivers = [self._public(u) for u in self.users.values() if u["role"] == "DRIVER"]
            return {
                "vehicles": {"vehicles": list(self.vehicles.values())},
                "drivers": {"drivers": drivers},
                "users": [self._public(u) for u in self.users.values()],
                "assignments": list(self.assignments.values()),
                "services": list(self.services.values()),
            }

        # ---------- assignments ----------
        @api.get("/assignments")
        async def assignments(user: dict = Depends(current_user)):
            return list(self.assignments.values())

        @api.get("/assignments/{aid}")
        async def assignment(aid: int, user: dict = Depends(current_user)):
            if aid not in self.assignments:
                raise HTTPException(404, "Assignment not found")
            return self.assignments[aid]

        @api.post("/assignments")
        async def create_assignment(body: dict, user: dict = Depends(admin)):
            aid = self._new_id()
            self.assignments[aid] = {**body, "id": aid}
            return self.assignments[aid]

        @api.put("/assignments/{aid}")
        async def update_assignment(aid: int, body: dict, user: dict = Depends(admin)):
            if aid not in self.assignments:
                raise HTTPException(404, "Assignment not found")
            self.assignments[aid] = {**self.assignments[aid], **body, "id": aid}
            return self.assignments[aid]

        @api.delete("/assignments/{aid}")
        async def delete_assignment(aid: int, user: dict = Depends(admin)):
            self.assignments.pop(aid, None)
            return {"success": True}

        # ---------- profiles ----------
        @api.get("/v1/profiles/users")
        async def users(user: dict = Depends(admin)):
            rows = [self._public(u) for u in self.users.values()]
            return {"success": True, "users": rows, "count": len(rows)}

        @api.get("/v1/profiles/drivers")
        async def drivers(user: dict = Depends(admin)):
            rows = [self._public(u) for u in self.users.values() if u["role"] == "DRIVER"]
            return {"success": True, "drivers": rows, "count": len(rows)}

        @api.get("/v1/profiles/vehicles")
        async def profile_vehicles(user: dict = Depends(admin)):
            rows = list(self.vehicles.values())
            return {"success": True, "vehicles": rows, "count": len(rows)}

        @api.post("/v1/profiles/create")
        async def create_profile(
            username: str = Form(...),
            password: str = Form(...),
            name: Optional[str] = Form(None),
            mailId: Optional[str] = Form(None),
            phoneNumber: Optional[str] = Form(None),
            role: Optional[str] = Form(None),
            user: dict = Depends(admin),
        ):
            if any(u["username"] == username for u in self.users.values()):
                return {"success": False, "message": "Username already exists"}
            uid = self._new_id()
            self.users[uid] = {"id": uid, "username": username, "password": password, "name": name,
                               "mailId": mailId, "phoneNumber": phoneNumber, "role": (role or "DRIVER").upper(),
                               "status": "ACTIVE"}
            return {"success": True, "user": self._public(self.users[uid])}

        @api.post("/v1/profiles/vehicles/create")
        async def create_vehicle(body: dict, user: dict = Depends(admin)):
            if not (body.get("vehicleName") or "").strip():
                return {"success": False, "message": "Vehicle name is required"}
            reg = body.get("registrationNumber")
            if any(v["registrationNumber"] == reg for v in self.vehicles.values()):
                return {"success": False, "message": "Registration number already exists"}
            vid = self._new_id()
            self.vehicles[vid] = {
                "id": vid, "vehicleName": body["vehicleName"], "registrationNumber": reg, "model": body.get("model"),
                "type": body.get("type", "CAR"), "capacity": int(body.get("capacity") or 4),
                "status": body.get("status", "ACTIVE"), "vehicleLocationStatus": "UNTRACKED",
            }
            return {"success": True, "vehicle": self.vehicles[vid]}

        @api.get("/v1/profiles/me/{uid}")
        async def me(uid: int, user: dict = Depends(current_user)):
            target = self.users.get(uid)
            if target is None:
                return JSONResponse({"success": False, "message": "User not found"}, status_code=404)
            profile = {"id": uid, "name": target["name"], "email": target["mailId"], "phone": target["phoneNumber"],
                       "username": target["username"], "role": target["role"], "createdDate": "Mon Jan 01 2024"}
            if target["role"] == "DRIVER":
                profile.update({"licenseNumber": f"DL-{uid}", "status": target["status"],
                                "totalTrips": target.get("totalTrips", 0), "rating": target.get("ratings", 0)})
                vehicle = self.vehicles.get(target.get("assignedVehicleId"))
                if vehicle:
                    profile["assignedVehicle"] = {
                        "id": vehicle["id"], "name": vehicle["vehicleName"], "plateNumber": vehicle["registrationNumber"],
                        "model": vehicle["model"], "type": vehicle["type"], "capacity": vehicle["capacity"],
                        "status": vehicle["status"], "lastServiceDate": "-", "nextServiceDate": "2024-07-10",
                    }
            return {"success": True, "profile": profile}

        @api.put("/v1/profiles/{kind}/{pid}")
        async def update_profile(kind: str, pid: int, body: dict, user: dict = Depends(admin)):
            table = self.vehicles if kind == "vehicles" else self.users
            if pid not in table:
                return JSONResponse({"success": False, "message": "Not found"}, status_code=404)
            table[pid].update(body)
            return {"success": True}

        @api.delete("/v1/profiles/{kind}/{pid}")
        async def delete_profile(kind: str, pid: int, user: dict = Depends(admin)):
            table = self.vehicles if kind == "vehicles" else self.users
            table.pop(pid, None)
            return {"success": True}

        # ---------- services ----------
        @api.get("/services")
        async def services(user: dict = Depends(current_user)):
            return list(self.services.values())

        @api.post("/services")
        async def create_service(body: dict, user: dict = Depends(admin)):
            sid = self._new_id()
            self.services[sid] = {**body, "id": sid}
            return self.services[sid]

        @api.put("/services/{sid}")
        async def update_service(sid: int, body: dict, user: dict = Depends(admin)):
            if sid not in self.services:
                raise HTTPException(404, "Service not found")
            self.services[sid] = {**self.services[sid], **body, "id": sid}
            return self.services[sid]

        @api.delete("/services/{sid}")
        async def delete_service(sid: int, user: dict = Depends(admin)):
            self.services.pop(sid, None)
            return {"success": True}

        @api.get("/vehicles")
        async def vehicles(user: dict = Depends(current_user)):
            return list(self.vehicles.values())

        # ---------- tracking ----------
        @api.get("/track/vehicles/all")
        async def track_all(user: dict = Depends(admin)):
            return list(self.vehicles.values())

        @api.get("/track/vehicles/search")
        async def track_search(query: str, user: dict = Depends(admin)):
            q = query.lower()
            vehicles = [v for v in self.vehicles.values()
                        if q in v["vehicleName"].lower() or q in v["registrationNumber"].lower()]
            drivers = [self._public(u) for u in self.users.values()
                       if u["role"] == "DRIVER" and q in (u["name"] or "").lower()]
            return {"vehicles": vehicles, "drivers": drivers}

        @api.get("/track/vehicles/{vid}")
        async def track_vehicle(vid: int, user: dict = Depends(admin)):
            if vid not in self.vehicles:
                raise HTTPException(404, "Vehicle not found")
            return self.vehicles[vid]

        app.include_router(api)
        return app
