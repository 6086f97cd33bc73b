from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    LEARNER = "learner"
    TRAINER = "trainer"
    OPERATIONS = "operations"


class AuthenticatedUser(BaseModel):
    id: str
    role: Role


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_at: datetime
