from typing import Any, Optional

from learnhub.client.coordinator import SilentRefreshCoordinator
from learnhub.client.transport import Ok, Outcome


class AuthApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def _unwrap(outcome: Outcome, fallback_message: str) -> Any:
    if isinstance(outcome, Ok):
        return outcome.data
    raise AuthApiError(outcome.message or fallback_message, outcome.status)


class AuthApi:
    """Typed wrappers around the /auth endpoints."""

    def __init__(self, coordinator: SilentRefreshCoordinator):
        self._coordinator = coordinator

    async def login(self, email: str, password: str) -> dict:
        outcome = await self._coordinator.request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            protected=False,
        )
        return _unwrap(outcome, "Login failed")

    async def signup(self, email: str, password: str, name: str, role: str) -> dict:
        outcome = await self._coordinator.request(
            "POST",
            "/auth/signup",
            json={"email": email, "password": password, "name": name, "role": role},
            protected=False,
        )
        return _unwrap(outcome, "Signup failed")

    async def logout(self) -> None:
        outcome = await self._coordinator.request(
            "POST", "/auth/logout", protected=False
        )
        _unwrap(outcome, "Logout failed")

    async def get_current_user(self) -> dict:
        outcome = await self._coordinator.request("GET", "/auth/me")
        data = _unwrap(outcome, "Could not load the current user")
        return data["user"]

    async def request_password_reset(self, email: str) -> str:
        outcome = await self._coordinator.request(
            "POST",
            "/auth/password-reset/request",
            json={"email": email},
            protected=False,
        )
        data = _unwrap(outcome, "Password reset request failed")
        return data["message"]
