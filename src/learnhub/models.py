from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from learnhub.auth.models import Role


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=2, max_length=255)
    role: Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshTokenBody(BaseModel):
    """Body fallback for clients that cannot send the refresh cookie."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class PasswordResetRequest(BaseModel):
    email: EmailStr

