import asyncio
from typing import Dict, List, Optional

import pytest

from learnhub.client.coordinator import SilentRefreshCoordinator
from learnhub.client.storage import MemoryStorage, TokenStore
from learnhub.client.transport import AuthExpired, Ok, Outcome

TOKEN_KEY = "learnhub_auth_token"


class FakeTransport:
    """Scripted stand-in for ``Transport``.

    Requests carrying ``valid_token`` succeed and everything else gets a 401.
    A successful refresh makes its new token the valid one unless
    ``accept_refreshed`` is off. ``refresh_gate`` and ``hold`` let a test
    decide when a refresh or a given path completes.
    """

    def __init__(self, valid_token: str = "T1"):
        self.valid_token = valid_token
        self.accept_refreshed = True
        self.sent: List[tuple] = []
        self.refresh_calls = 0
        self.refresh_gate = asyncio.Event()
        self.refresh_gate.set()
        self.refresh_outcome: Outcome = Ok(200, {"data": {"accessToken": "T2"}})
        self.responses: Dict[str, Outcome] = {}
        self.hold: Dict[str, asyncio.Event] = {}
        self.cookies_cleared = 0

    async def send(self, method: str, path: str, *, token: Optional[str] = None, **kwargs):
        self.sent.append((method, path, token))
        await asyncio.sleep(0)
        if path in self.hold:
            await self.hold[path].wait()
        if path in self.responses:
            return self.responses[path]
        if token is not None and token == self.valid_token:
            return Ok(200, {"data": {"path": path}})
        return AuthExpired(401, {"message": "Invalid or expired token"})

    async def refresh(self):
        self.refresh_calls += 1
        await self.refresh_gate.wait()
        outcome = self.refresh_outcome
        if isinstance(outcome, Ok) and self.accept_refreshed:
            self.valid_token = outcome.data["accessToken"]
        return outcome

    def clear_cookies(self):
        self.cookies_cleared += 1


async def _settle(rounds: int = 20):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Let every runnable task advance until it blocks."""
    return _settle


@pytest.fixture
def token_store():
    return TokenStore(MemoryStorage(), TOKEN_KEY)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def coordinator(transport, token_store):
    return SilentRefreshCoordinator(transport, token_store)
