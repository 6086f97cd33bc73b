from learnhub.client.api_client import ApiClient
from learnhub.client.coordinator import (
    CoordinatorState,
    SessionExpiredError,
    SilentRefreshCoordinator,
)
from learnhub.client.session import SessionManager, SessionState
from learnhub.client.transport import AuthExpired, Ok, OtherError, Outcome, Transport

__all__ = [
    "ApiClient",
    "CoordinatorState",
    "SessionExpiredError",
    "SilentRefreshCoordinator",
    "SessionManager",
    "SessionState",
    "AuthExpired",
    "Ok",
    "OtherError",
    "Outcome",
    "Transport",
]
