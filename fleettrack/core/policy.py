# fleettrack/core/policy.py
from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"

    @classmethod
    def parse(cls, value) -> "Role":
        # backend sends "ADMIN" on login but "admin" in profile listings
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            return cls.DRIVER


LOGIN_PATH = "/login"
PUBLIC_PATHS = {LOGIN_PATH}

# path -> role required; None means any signed-in user
ROUTE_ROLES: dict[str, Optional[Role]] = {
    "/dashboard": Role.ADMIN,
    "/track": Role.ADMIN,
    "/profiles": Role.ADMIN,
    "/assignments": None,
    "/service": None,
    "/profile": None,
}

LANDING_PAGES = {
    Role.ADMIN: "/dashboard",
    Role.DRIVER: "/profile",
}

# sidebar entries per role: (path, label)
NAV_ITEMS = {
    Role.ADMIN: [
        ("/dashboard", "Dashboard"),
        ("/track", "Track"),
        ("/assignments", "Assignments"),
        ("/service", "Service"),
        ("/profiles", "Profiles"),
    ],
    Role.DRIVER: [
        ("/profile", "My Profile"),
        ("/assignments", "My Assignments"),
        ("/service", "Vehicle Status"),
    ],
}


def landing_page(role: Role) -> str:
    return LANDING_PAGES.get(role, "/profile")


def is_known(path: str) -> bool:
    return path in ROUTE_ROLES or path in PUBLIC_PATHS or path == "/"


def can_view(path: str, role: Role) -> bool:
    if path in PUBLIC_PATHS:
        return True
    if path not in ROUTE_ROLES:
        return False
    required = ROUTE_ROLES[path]
    return required is None or required == role
