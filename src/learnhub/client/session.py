"""
Client-side view of the signed-in user.

``SessionManager`` holds ``user``, ``loading`` and ``error`` for the UI and
drives login, signup and logout through ``AuthApi``. It never inspects token
expiry itself; a session ends when the refresh coordinator reports it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from learnhub.client.auth_api import AuthApi, AuthApiError
from learnhub.client.coordinator import SessionExpiredError, SilentRefreshCoordinator
from learnhub.client.storage import TokenStore

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    user: Optional[dict] = None
    loading: bool = False
    error: Optional[str] = None


class SessionManager:
    def __init__(
        self,
        api: AuthApi,
        coordinator: SilentRefreshCoordinator,
        token_store: TokenStore,
    ):
        self._api = api
        self._coordinator = coordinator
        self._tokens = token_store
        self.state = SessionState()
        # A stale stored session is dropped without telling the user
        self._restoring = False
        coordinator.on_session_expired(self._handle_session_expired)

    @property
    def user(self) -> Optional[dict]:
        return self.state.user

    def clear_error(self) -> None:
        self.state.error = None

    @property
    def is_authenticated(self) -> bool:
        return self.state.user is not None

    async def initialize(self) -> None:
        """Restore the user of a persisted session, if any."""
        if not self._tokens.get_access_token():
            self.state.loading = False
            return

        self.state.loading = True
        self._restoring = True
        try:
            self.state.user = await self._api.get_current_user()
        except (AuthApiError, SessionExpiredError) as e:
            logger.info(f"Stored session could not be restored: {e}")
            self._clear_session()
        finally:
            self._restoring = False
            self.state.loading = False

    async def login(self, email: str, password: str) -> Optional[dict]:
        await self._coordinator.settle()
        self.state.loading = True
        self.state.error = None
        try:
            data = await self._api.login(email, password)
        except AuthApiError as e:
            # A failed login leaves any existing session untouched
            self.state.error = e.message
            return None
        finally:
            self.state.loading = False

        return self._open_session(data)

    async def signup(
        self, email: str, password: str, name: str, role: str
    ) -> Optional[dict]:
        await self._coordinator.settle()
        self.state.loading = True
        self.state.error = None
        try:
            data = await self._api.signup(email, password, name, role)
        except AuthApiError as e:
            self.state.error = e.message
            return None
        finally:
            self.state.loading = False

        return self._open_session(data)

    async def logout(self) -> None:
        self.state.loading = True
        try:
            # Let a running refresh land so the rotated cookie is the one revoked
            await self._coordinator.settle()
            await self._api.logout()
        except Exception as e:
            # Local logout proceeds even when the server cannot be told
            logger.warning(f"Server logout failed, clearing local session anyway: {e}")
        finally:
            self._clear_session()
            self.state.error = None
            self.state.loading = False

    async def refresh_user(self) -> None:
        if not self.is_authenticated:
            return

        try:
            self.state.user = await self._api.get_current_user()
        except (AuthApiError, SessionExpiredError) as e:
            logger.info(f"Could not refresh the current user, ending session: {e}")
            self._clear_session()

    def _open_session(self, data: dict) -> dict:
        self._coordinator.start_session(data["accessToken"])
        self.state.user = data["user"]
        return self.state.user

    def _clear_session(self) -> None:
        self._coordinator.end_session()
        self.state.user = None

    def _handle_session_expired(self) -> None:
        logger.info("Session expired; signing out")
        self.state.user = None
        if not self._restoring:
            self.state.error = "Your session has expired. Please log in again."
