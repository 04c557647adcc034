# fleettrack/pages/base.py
"""
Common plumbing for page controllers.

A controller owns the state one page renders (rows, filters, loading flag,
error text) and talks to the backend through FleetApi. It knows nothing
about Flet: the view passes `on_change` and re-renders when it fires.
"""
import logging
from typing import Any, Awaitable, Callable, Optional

from fleettrack.core.errors import ApiError, AuthError, FormError
from fleettrack.core.notify import Notice, Notifier, error_notice, silent
from fleettrack.core.session import SESSION_EXPIRED, SessionStore
from fleettrack.services.fleet_api import FleetApi

logger = logging.getLogger(__name__)


class PageController:
    title = ""

    def __init__(
        self,
        api: FleetApi,
        store: SessionStore,
        notify: Notifier = silent,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.api = api
        self.store = store
        self.notify = notify
        self.on_change = on_change
        self.mounted = True
        self.loading = False
        self.error: Optional[str] = None
        # HTTP status behind `error`, when there was one
        self.error_status: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return bool(self.store.session and self.store.session.is_admin)

    @property
    def user_id(self) -> str:
        return self.store.session.user_id if self.store.session else ""

    def unmount(self) -> None:
        self.mounted = False
        self.on_change = None

    def changed(self) -> None:
        if self.mounted and self.on_change:
            self.on_change()

    async def call(self, awaitable: Awaitable[Any], failure_title: str = "Request failed") -> tuple[bool, Any]:
        """
        Await one backend call.

        Returns (ok, value). Failures become a notice plus `self.error`; nothing
        propagates to the view. Once the page is unmounted the result is dropped
        and (False, None) is returned.
        """
        try:
            value = await awaitable
        except AuthError as ex:
            # the session store already signed out
            logger.info("%s: auth failure %s", self.__class__.__name__, ex.status)
            if self.mounted:
                self.error = SESSION_EXPIRED
                self.error_status = ex.status
            return False, None
        except ApiError as ex:
            logger.warning("%s: %s", self.__class__.__name__, ex.message)
            if self.mounted:
                self.error = ex.message
                self.error_status = ex.status
                self.notify(error_notice(failure_title, ex.message))
            return False, None

        if not self.mounted:
            logger.debug("%s unmounted, dropping response", self.__class__.__name__)
            return False, None
        return True, value

    async def load(self) -> None:
        self.loading = True
        self.error = None
        self.error_status = None
        self.changed()
        try:
            await self.fetch()
        finally:
            self.loading = False
            self.changed()

    async def fetch(self) -> None:
        raise NotImplementedError

    def reject(self, ex: FormError) -> bool:
        self.notify(Notice(ex.title, ex.message, "warning"))
        return False

    def require_admin(self) -> bool:
        if self.is_admin:
            return True
        self.notify(Notice("Not allowed", "Only administrators can change this.", "warning"))
        return False
