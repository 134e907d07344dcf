"""
Auth session holder

An explicitly constructed object (one per application run) instead of a
module level singleton: the caller creates it, starts it, hands it to the
components that need the current user, and stops it on shutdown.
"""
import asyncio
import enum
import inspect
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from datewrapped.client.api_client import ApiClient
from datewrapped.core.errors import AuthError, DatingWrappedError

logger = logging.getLogger(__name__)


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass
class SessionState:
    user_id: str
    access_token: str
    refresh_token: str


Listener = Callable[[AuthEvent, Optional[SessionState]], object]


class MemoryTokenStore:
    """Keeps the refresh token for the lifetime of the process"""

    def __init__(self, refresh_token: Optional[str] = None):
        self._token = refresh_token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, refresh_token: Optional[str]) -> None:
        self._token = refresh_token


class FileTokenStore:
    """Persists the refresh token in a small JSON file"""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8")).get("refresh_token")
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable token file {self.path}: {e}")
            return None

    def save(self, refresh_token: Optional[str]) -> None:
        if refresh_token is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"refresh_token": refresh_token}), encoding="utf-8")


class AuthSession:
    """Current user, token refresh and auth change notifications"""

    def __init__(self, api: ApiClient, token_store=None):
        self.api = api
        self.token_store = token_store or MemoryTokenStore()
        self._state: Optional[SessionState] = None
        self._listeners: List[Listener] = []
        self._started = False
        self._refresh_lock = asyncio.Lock()
        api.token_provider = lambda: self.access_token
        api.refresh_handler = self._renew_after_rejection

    # lifecycle

    async def start(self) -> Optional[SessionState]:
        """Resume a persisted session, if any"""
        if self._started:
            return self._state
        self._started = True
        if self.token_store.load():
            return await self.refresh_session()
        return None

    async def stop(self) -> None:
        self._listeners.clear()
        self._started = False

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    # state

    @property
    def started(self) -> bool:
        return self._started

    @property
    def user_id(self) -> Optional[str]:
        return self._state.user_id if self._state else None

    @property
    def access_token(self) -> Optional[str]:
        return self._state.access_token if self._state else None

    def require_user(self) -> str:
        if not self.user_id:
            raise AuthError("Not signed in")
        return self.user_id

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for auth events; returns the unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: AuthEvent):
        for listener in list(self._listeners):
            result = listener(event, self._state)
            if inspect.isawaitable(result):
                await result

    def _set_state(self, payload: dict) -> SessionState:
        self._state = SessionState(
            user_id=payload["user_id"],
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
        )
        self.token_store.save(self._state.refresh_token)
        return self._state

    def _clear(self):
        self._state = None
        self.token_store.save(None)

    # operations

    async def sign_up(self, email: str, password: str) -> SessionState:
        payload = await self.api.post("/auth/signup", json={"email": email, "password": password}, auth=False)
        state = self._set_state(payload)
        await self._emit(AuthEvent.SIGNED_IN)
        return state

    async def sign_in(self, email: str, password: str) -> SessionState:
        payload = await self.api.post("/auth/login", json={"email": email, "password": password}, auth=False)
        state = self._set_state(payload)
        await self._emit(AuthEvent.SIGNED_IN)
        return state

    async def refresh_session(self) -> Optional[SessionState]:
        """
        Exchange the refresh token for a new pair. A rejected token ends the
        session (SIGNED_OUT); a network failure keeps the current state.
        """
        refresh_token = self._state.refresh_token if self._state else self.token_store.load()
        if not refresh_token:
            return None
        try:
            payload = await self.api.post("/auth/refresh", json={"refresh_token": refresh_token}, auth=False)
        except AuthError as e:
            logger.info(f"Session refresh rejected: {e.message}")
            had_session = self._state is not None
            self._clear()
            if had_session:
                await self._emit(AuthEvent.SIGNED_OUT)
            return None

        was_signed_in = self._state is not None
        state = self._set_state(payload)
        await self._emit(AuthEvent.TOKEN_REFRESHED if was_signed_in else AuthEvent.SIGNED_IN)
        return state

    async def _renew_after_rejection(self, rejected_token: Optional[str]) -> bool:
        """
        Installed on the ApiClient: an access token got a 401. Returns whether
        a newer token is now available. Concurrent callers share one refresh,
        since the server accepts each refresh token only once.
        """
        async with self._refresh_lock:
            if self.access_token and self.access_token != rejected_token:
                return True
            try:
                return await self.refresh_session() is not None
            except DatingWrappedError as e:
                logger.warning(f"Session refresh failed: {e.message}")
                return False

    async def sign_out(self) -> None:
        """Revoke server side when possible; the local session always ends"""
        if self._state is None:
            return
        try:
            await self.api.post("/auth/logout", json={"refresh_token": self._state.refresh_token}, auth=False)
        except DatingWrappedError as e:
            logger.warning(f"Logout request failed, clearing local session anyway: {e.message}")
        self._clear()
        await self._emit(AuthEvent.SIGNED_OUT)
