"""
Silent access-token refresh for the API client.

All protected requests go through ``SilentRefreshCoordinator.request``. When a
request comes back 401 the coordinator runs at most one refresh at a time:
the first failing request starts it, every other request that fails while it
is running parks on the same future, and all of them retry once after it
settles. If the refresh fails the session is over: tokens are cleared, every
parked request is rejected with ``SessionExpiredError`` and the registered
session-expired callbacks fire.

State machine::

    IDLE --401--> REFRESHING --ok--> IDLE
                             --fail--> LOGGED_OUT --start_session--> IDLE
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from learnhub.client.storage import TokenStore
from learnhub.client.transport import AuthExpired, Ok, OtherError, Outcome, Transport

logger = logging.getLogger(__name__)


class CoordinatorState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    LOGGED_OUT = "logged_out"


class SessionExpiredError(Exception):
    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(message)
        self.message = message


SessionExpiredCallback = Callable[[], None]


class SilentRefreshCoordinator:
    def __init__(self, transport: Transport, token_store: TokenStore):
        self._transport = transport
        self._tokens = token_store
        self._state = CoordinatorState.IDLE
        self._inflight: Optional[asyncio.Future] = None
        self._refresh_task: Optional[asyncio.Task] = None
        # Bumped whenever a new access token is installed
        self._generation = 0
        # Bumped whenever a session starts or ends; stale refresh results are dropped
        self._epoch = 0
        self._session_expired_callbacks: List[SessionExpiredCallback] = []

    @property
    def state(self) -> CoordinatorState:
        return self._state

    def on_session_expired(self, callback: SessionExpiredCallback) -> None:
        self._session_expired_callbacks.append(callback)

    def start_session(self, access_token: str) -> None:
        """Install the access token of a freshly authenticated session."""
        self._tokens.set_access_token(access_token)
        self._generation += 1
        self._epoch += 1
        # Requests parked on an abandoned refresh retry with the new token
        self._abandon_refresh(retry=True)
        self._state = CoordinatorState.IDLE

    def end_session(self) -> None:
        """Forget the local session. Does not notify the session-expired callbacks."""
        self._abandon_refresh(retry=False)
        self._clear_credentials()
        self._epoch += 1
        self._state = CoordinatorState.LOGGED_OUT

    async def request(
        self, method: str, path: str, *, protected: bool = True, **kwargs
    ) -> Outcome:
        """
        Send a request with the current access token.

        Unprotected requests (login, signup, logout) go out without a token and
        never take part in refresh. A protected request that gets a 401 waits
        for the refresh and is retried once; if the retry is rejected again the
        original outcome is returned. Raises ``SessionExpiredError`` when the
        session has ended or the refresh fails.
        """
        if not protected:
            return await self._transport.send(method, path, **kwargs)

        if self._state is CoordinatorState.LOGGED_OUT:
            raise SessionExpiredError()

        generation = self._generation
        outcome = await self._send(method, path, **kwargs)
        if not isinstance(outcome, AuthExpired):
            return outcome

        if not await self._wait_for_refresh(generation):
            raise SessionExpiredError()

        retry = await self._send(method, path, **kwargs)
        if isinstance(retry, AuthExpired):
            logger.warning(
                f"{method} {path} rejected again after refresh; not retrying"
            )
            return outcome
        return retry

    async def _send(self, method: str, path: str, **kwargs) -> Outcome:
        return await self._transport.send(
            method, path, token=self._tokens.get_access_token(), **kwargs
        )

    async def _wait_for_refresh(self, sent_generation: int) -> bool:
        if self._state is CoordinatorState.LOGGED_OUT:
            return False

        if self._generation != sent_generation and self._inflight is None:
            # A refresh finished after this request went out
            return True

        if self._inflight is None:
            loop = asyncio.get_running_loop()
            self._inflight = loop.create_future()
            self._state = CoordinatorState.REFRESHING
            self._refresh_task = loop.create_task(
                self._run_refresh(self._inflight, self._epoch)
            )

        # A cancelled waiter must not cancel the refresh shared by the others
        return await asyncio.shield(self._inflight)

    async def settle(self) -> None:
        """Wait for an in-flight refresh, if any, to finish."""
        if self._inflight is not None:
            await asyncio.shield(self._inflight)

    async def _run_refresh(self, future: asyncio.Future, epoch: int) -> None:
        try:
            outcome = await self._transport.refresh()
        except asyncio.CancelledError:
            logger.warning("Token refresh cancelled; ending session")
            if epoch == self._epoch and not future.done():
                self._expire_session(future)
            raise
        except Exception:
            logger.exception("Token refresh raised unexpectedly")
            outcome = OtherError(None, None, "refresh raised")

        if epoch != self._epoch or future.done():
            logger.info("Discarding refresh result for a session that has ended")
            if self._state is CoordinatorState.LOGGED_OUT:
                # The response may have put a rotated refresh cookie back in the jar
                self._transport.clear_cookies()
            return

        access_token = self._access_token_from(outcome)
        if access_token:
            self._tokens.set_access_token(access_token)
            self._generation += 1
            self._state = CoordinatorState.IDLE
            self._inflight = None
            self._refresh_task = None
            logger.info("Access token refreshed")
            future.set_result(True)
            return

        logger.warning(f"Token refresh failed ({_describe(outcome)}); ending session")
        self._expire_session(future)

    @staticmethod
    def _access_token_from(outcome: Outcome) -> Optional[str]:
        if not isinstance(outcome, Ok):
            return None
        data = outcome.data
        if isinstance(data, dict):
            return data.get("accessToken")
        return None

    def _expire_session(self, future: asyncio.Future) -> None:
        self._clear_credentials()
        self._epoch += 1
        self._state = CoordinatorState.LOGGED_OUT
        self._inflight = None
        self._refresh_task = None
        future.set_result(False)

        for callback in list(self._session_expired_callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Session-expired callback failed")

    def _abandon_refresh(self, retry: bool) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.set_result(retry)
        self._inflight = None
        self._refresh_task = None

    def _clear_credentials(self) -> None:
        self._tokens.clear()
        self._transport.clear_cookies()


def _describe(outcome: Outcome) -> str:
    if isinstance(outcome, OtherError) and outcome.status is None:
        return f"no response: {outcome.message}"
    return f"status {outcome.status}"
