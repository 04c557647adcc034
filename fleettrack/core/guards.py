# fleettrack/core/guards.py
"""
Route guard: decides per navigation whether the current session may see a page.

    unchecked -> verifying -> allowed | denied-redirect | unauthenticated-redirect
    unknown path -> not-found

Role checks run on every navigation. Server re-verification only runs when the
last confirmation is older than `max_age` (the heartbeat keeps it fresh
otherwise), and a failed verification always exits to the login page.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from fleettrack.core.notify import Notice, Notifier, silent
from fleettrack.core.policy import LOGIN_PATH, PUBLIC_PATHS, ROUTE_ROLES, can_view, is_known, landing_page
from fleettrack.core.session import SessionStore

logger = logging.getLogger(__name__)

ACCESS_DENIED = "You don't have permission to view that page."


class GuardState(str, Enum):
    UNCHECKED = "unchecked"
    VERIFYING = "verifying"
    ALLOWED = "allowed"
    DENIED_REDIRECT = "denied-redirect"
    UNAUTHENTICATED_REDIRECT = "unauthenticated-redirect"
    NOT_FOUND = "not-found"
    # a newer navigation started while this one was verifying
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    path: str
    redirect_to: Optional[str] = None

    @property
    def render(self) -> bool:
        return self.state == GuardState.ALLOWED and self.redirect_to is None

    def pending_redirect(self, current_route: str) -> Optional[str]:
        """Redirect target still to be navigated to; None when already there."""
        if self.redirect_to is None or _normalize(current_route) == self.redirect_to:
            return None
        return self.redirect_to


class RouteGuard:
    def __init__(
        self,
        store: SessionStore,
        max_age: float,
        notify: Notifier = silent,
        on_state: Optional[Callable[[GuardState, str], None]] = None,
    ):
        self.store = store
        self.max_age = max_age
        self.notify = notify
        self.on_state = on_state
        self.next_path: Optional[str] = None
        self._denied_key: Optional[tuple] = None
        self._navigation = 0

    async def evaluate(self, path: str) -> GuardDecision:
        path = _normalize(path)
        self._navigation += 1
        navigation = self._navigation
        self._set_state(GuardState.UNCHECKED, path)

        if path == "/":
            role = self.store.role
            return self._redirect(GuardState.ALLOWED, path, landing_page(role) if role else LOGIN_PATH)

        if not is_known(path):
            return self._finish(GuardDecision(GuardState.NOT_FOUND, path))

        if path in PUBLIC_PATHS:
            if self.store.authenticated and path == LOGIN_PATH:
                return self._redirect(GuardState.ALLOWED, path, landing_page(self.store.role))
            return self._finish(GuardDecision(GuardState.ALLOWED, path))

        if not self.store.authenticated:
            self.next_path = path
            return self._redirect(GuardState.UNAUTHENTICATED_REDIRECT, path, LOGIN_PATH)

        if not self.store.is_fresh(self.max_age):
            self._set_state(GuardState.VERIFYING, path)
            ok = await self.store.verify()
            if navigation != self._navigation:
                logger.debug("Navigation to %s superseded while verifying", path)
                return GuardDecision(GuardState.SUPERSEDED, path)
            if not ok:
                self.next_path = path
                return self._redirect(GuardState.UNAUTHENTICATED_REDIRECT, path, LOGIN_PATH)

        role = self.store.role
        if role is None:
            # logged out while we were verifying
            return self._redirect(GuardState.UNAUTHENTICATED_REDIRECT, path, LOGIN_PATH)

        if not can_view(path, role):
            key = (self.store.generation, path)
            if key != self._denied_key:
                self._denied_key = key
                logger.info("Access denied to %s for role %s", path, role.value)
                self.notify(Notice("Access denied", ACCESS_DENIED, "warning"))
            return self._redirect(GuardState.DENIED_REDIRECT, path, landing_page(role))

        self._denied_key = None
        return self._finish(GuardDecision(GuardState.ALLOWED, path))

    def consume_next_path(self) -> str:
        """Where to go after a successful login: the remembered page if the role allows it."""
        role = self.store.role
        wanted, self.next_path = self.next_path, None
        if role is None:
            return LOGIN_PATH
        if wanted and wanted in ROUTE_ROLES and can_view(wanted, role):
            return wanted
        return landing_page(role)

    def _redirect(self, state: GuardState, path: str, target: str) -> GuardDecision:
        return self._finish(GuardDecision(state, path, redirect_to=target))

    def _finish(self, decision: GuardDecision) -> GuardDecision:
        self._set_state(decision.state, decision.path)
        return decision

    def _set_state(self, state: GuardState, path: str) -> None:
        if self.on_state:
            self.on_state(state, path)


def _normalize(path: str) -> str:
    path = (path or "/").split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"
