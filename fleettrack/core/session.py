# fleettrack/core/session.py
"""
Client-side session: who is signed in, with which role and token.

SessionStore is the only writer of the token. The identity is mirrored to
storage (TOKEN_KEY / USER_KEY) so a restart can restore it, and every state
change bumps `generation`. A verify() response is applied only if the
generation is unchanged when it resolves, so a logout (or a fresh login)
always wins over an in-flight verification.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fleettrack.core.errors import ApiError, NetworkError
from fleettrack.core.notify import Notice, Notifier, silent
from fleettrack.core.policy import LOGIN_PATH, Role
from fleettrack.core.storage import TOKEN_KEY, USER_KEY, Storage

logger = logging.getLogger(__name__)

SESSION_EXPIRED = "Session expired. Please login again."
AUTH_ERROR = "Authentication error. Please login again."
UNREACHABLE = "Unable to connect to server."

# token -> HTTP status of GET /auth/verify; raises NetworkError when unreachable
VerifyFn = Callable[[str], Awaitable[int]]
Navigate = Callable[[str], None]
Listener = Callable[[Optional["Session"]], None]


@dataclass(frozen=True)
class Session:
    user_id: str
    username: str
    display_name: str
    role: Role
    token: str

    @classmethod
    def from_identity(cls, token: str, identity: dict) -> "Session":
        user_id = identity.get("userId", identity.get("user_id", identity.get("id")))
        username = str(identity.get("username") or "")
        return cls(
            user_id="" if user_id is None else str(user_id),
            username=username,
            display_name=str(identity.get("name") or identity.get("displayName") or username),
            role=Role.parse(identity.get("role")),
            token=token,
        )

    def identity(self) -> dict:
        # same keys the backend login response uses
        return {
            "userId": self.user_id,
            "username": self.username,
            "name": self.display_name,
            "role": self.role.value,
        }

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class SessionStore:
    def __init__(
        self,
        storage: Storage,
        verify_fn: VerifyFn,
        navigate: Optional[Navigate] = None,
        notify: Notifier = silent,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._storage = storage
        self._verify_fn = verify_fn
        self._navigate = navigate
        self._notify = notify
        self._clock = clock

        self._session: Optional[Session] = None
        self._generation = 0
        self._verified_at: Optional[float] = None
        self._listeners: list[Listener] = []

    # ---------- read side ----------
    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def authenticated(self) -> bool:
        return self._session is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def role(self) -> Optional[Role]:
        return self._session.role if self._session else None

    def is_fresh(self, max_age: float) -> bool:
        """True if the token was confirmed by the server less than `max_age` seconds ago."""
        if not self._session or self._verified_at is None:
            return False
        return (self._clock() - self._verified_at) < max_age

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------- write side ----------
    def login(self, token: str, identity: dict) -> Session:
        session = Session.from_identity(token, identity)
        self._storage.set(TOKEN_KEY, token)
        self._storage.set(USER_KEY, json.dumps(session.identity()))
        self._generation += 1
        self._session = session
        # fresh token straight from /auth/login
        self._verified_at = self._clock()
        logger.info("Signed in as %s (%s)", session.username, session.role.value)
        self._emit()
        return session

    def logout(self) -> None:
        self._storage.remove(TOKEN_KEY)
        self._storage.remove(USER_KEY)
        self._generation += 1
        self._verified_at = None
        if self._session is not None:
            logger.info("Signed out %s", self._session.username)
            self._session = None
            self._emit()
        if self._navigate:
            self._navigate(LOGIN_PATH)

    async def restore_from_storage(self) -> bool:
        token = self._storage.get(TOKEN_KEY)
        raw_user = self._storage.get(USER_KEY)
        if not token or not raw_user:
            # half-written state from an older run
            self._storage.remove(TOKEN_KEY)
            self._storage.remove(USER_KEY)
            return False

        try:
            identity = json.loads(raw_user)
            if not isinstance(identity, dict):
                raise ValueError("identity is not an object")
        except ValueError as ex:
            logger.error("Failed to parse stored user data: %s", ex)
            self.logout()
            return False

        self._generation += 1
        self._session = Session.from_identity(token, identity)
        self._verified_at = None
        self._emit()
        return await self.verify()

    async def verify(self) -> bool:
        """
        Confirm the stored token with the backend.

        Never raises: any failure ends in logout() plus a notice. Returns
        whether the session is still authenticated afterwards.
        """
        token = self._storage.get(TOKEN_KEY)
        if not token:
            self.logout()
            return False

        generation = self._generation
        failure: Optional[str] = None
        try:
            status = await self._verify_fn(token)
            if status in (401, 403):
                failure = SESSION_EXPIRED
            elif not 200 <= status < 300:
                failure = AUTH_ERROR
        except NetworkError as ex:
            logger.error("Auth verification failed: %s", ex)
            failure = UNREACHABLE
        except ApiError as ex:
            logger.error("Auth verification failed: %s", ex)
            failure = AUTH_ERROR

        if generation != self._generation:
            logger.debug("Dropping stale verify response (generation %s != %s)", generation, self._generation)
            return self.authenticated

        if failure:
            logger.warning("Token verification failed: %s", failure)
            self._notify(Notice("Signed out", failure, "error"))
            self.logout()
            return False

        self._verified_at = self._clock()
        return True

    async def handle_auth_failure(self, status: int) -> None:
        """Called by the HTTP pipeline when an authenticated call comes back 401/403."""
        if not self.authenticated:
            return
        logger.warning("Authenticated call rejected with %s, signing out", status)
        self._notify(Notice("Signed out", SESSION_EXPIRED, "error"))
        self.logout()

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self._session)
