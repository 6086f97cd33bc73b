from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    api_url: str = "http://localhost:8000"
    # Key of the persistent slot holding the access token
    auth_token_key: str = "learnhub_auth_token"
    timeout_seconds: float = 30.0
    # JSON file backing the token slot; in-memory when unset
    storage_path: str | None = None

    model_config = SettingsConfigDict(env_prefix="LEARNHUB_CLIENT_", extra="ignore")


@lru_cache
def get_client_settings():
    return ClientSettings()
