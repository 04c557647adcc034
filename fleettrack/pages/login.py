# fleettrack/pages/login.py
import asyncio
import logging
from typing import Callable, Optional

from fleettrack.core.errors import ApiError, FormError, NetworkError
from fleettrack.core.guards import RouteGuard
from fleettrack.core.notify import Notice, Notifier, silent
from fleettrack.core.session import SessionStore
from fleettrack.services.fleet_api import FleetApi

logger = logging.getLogger(__name__)

WELCOME = "Welcome back!"
INVALID_CREDENTIALS = "Invalid username or password"
SLOW_RESPONSE = "Server response is taking longer than usual... Kindly wait."


class LoginController:
    def __init__(
        self,
        api: FleetApi,
        store: SessionStore,
        guard: RouteGuard,
        navigate: Callable[[str], None],
        notify: Notifier = silent,
        slow_after: float = 5.0,
    ):
        self.api = api
        self.store = store
        self.guard = guard
        self.navigate = navigate
        self.notify = notify
        self.slow_after = slow_after
        self.submitting = False
        self.message: Optional[str] = None

    @staticmethod
    def validate(username: str, password: str) -> tuple[str, str]:
        username = (username or "").strip()
        if not username or not password:
            raise FormError("Missing credentials", "Please enter both username and password.")
        return username, password

    async def _slow_notice(self) -> None:
        await asyncio.sleep(self.slow_after)
        self.notify(Notice("Please wait", SLOW_RESPONSE, "info"))

    async def submit(self, username: str, password: str) -> bool:
        if self.submitting:
            return False
        try:
            username, password = self.validate(username, password)
        except FormError as ex:
            self.message = ex.message
            self.notify(Notice(ex.title, ex.message, "warning"))
            return False

        self.submitting = True
        self.message = None
        slow = asyncio.get_running_loop().create_task(self._slow_notice())
        try:
            result = await self.api.login(username, password)
        except NetworkError as ex:
            return self._fail(ex.message)
        except ApiError as ex:
            # a bare status means the backend gave no reason
            generic = ex.message == f"Error: {ex.status}"
            return self._fail(INVALID_CREDENTIALS if generic else ex.message)
        finally:
            slow.cancel()
            self.submitting = False

        if not (result.success and result.token):
            return self._fail(result.message or INVALID_CREDENTIALS)

        self.store.login(result.token, result.identity())
        self.notify(Notice(WELCOME, f"Signed in as {self.store.session.display_name}", "success"))
        self.navigate(self.guard.consume_next_path())
        return True

    def _fail(self, message: str) -> bool:
        logger.info("Login failed: %s", message)
        self.message = message
        self.notify(Notice("Login failed", message, "error"))
        return False
