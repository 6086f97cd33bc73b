from typing import Optional

from learnhub.client.auth_api import AuthApi
from learnhub.client.coordinator import SilentRefreshCoordinator
from learnhub.client.session import SessionManager
from learnhub.client.settings import ClientSettings, get_client_settings
from learnhub.client.storage import FileStorage, KeyValueStorage, MemoryStorage, TokenStore
from learnhub.client.transport import Outcome, Transport


class ApiClient:
    """
    One signed-in client: a single transport, token slot, refresh coordinator
    and session, wired together. Use as an async context manager so the
    underlying HTTP connection pool is closed.
    """

    def __init__(
        self,
        transport: Transport,
        storage: Optional[KeyValueStorage] = None,
        settings: Optional[ClientSettings] = None,
    ):
        settings = settings or get_client_settings()
        if storage is None:
            storage = (
                FileStorage(settings.storage_path)
                if settings.storage_path
                else MemoryStorage()
            )

        self.transport = transport
        self.tokens = TokenStore(storage, settings.auth_token_key)
        self.coordinator = SilentRefreshCoordinator(transport, self.tokens)
        self.auth = AuthApi(self.coordinator)
        self.session = SessionManager(self.auth, self.coordinator, self.tokens)

    @classmethod
    def from_settings(cls, settings: Optional[ClientSettings] = None) -> "ApiClient":
        settings = settings or get_client_settings()
        return cls(Transport.from_settings(settings), settings=settings)

    async def request(self, method: str, path: str, **kwargs) -> Outcome:
        return await self.coordinator.request(method, path, **kwargs)

    async def get(self, path: str, **kwargs) -> Outcome:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Outcome:
        return await self.request("POST", path, **kwargs)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
