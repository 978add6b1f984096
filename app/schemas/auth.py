from pydantic import BaseModel
from uuid import UUID

from ..core.security import UserRole


class Credentials(BaseModel):
    email: str = ""
    password: str = ""


class RefreshTokensRequest(BaseModel):
    access_token: str = ""
    refresh_token: str = ""
    grant_type: str = ""


class UserResponse(BaseModel):
    uuid: UUID
    email: str
    role: UserRole
