import os
from os.path import join
from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from learnhub.config import default_database_path

root_dir = os.path.dirname(os.path.abspath(__file__))
env_path = join(root_dir, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)


class Settings(BaseSettings):
    jwt_secret: str | None = None
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    database_path: str = default_database_path

    env: str | None = None
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    refresh_cookie_name: str = "refreshToken"
    refresh_cookie_path: str = "/auth"

    bugsnag_api_key: str | None = None

    model_config = SettingsConfigDict(env_file=env_path, extra="ignore")

    @property
    def is_production(self) -> bool:
        return (self.env or "").lower() in ("prod", "production")


@lru_cache
def get_settings():
    return Settings()


settings = get_settings()
