from fastapi import APIRouter, Depends

from ...api.deps import (
    get_auth_service, get_authenticated_user, get_current_user, rate_limit_check
)
from ...core.security import TokenPair
from ...services.auth_service import AuthService
from ...schemas.auth import Credentials, RefreshTokensRequest, UserResponse
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenPair)
async def login(
    credentials: Credentials,
    auth_service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return access and refresh tokens."""
    return auth_service.authenticate(credentials)


@router.put("/token", response_model=TokenPair)
async def refresh_tokens(
    tokens: RefreshTokensRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange a refresh token for a new token pair."""
    return auth_service.refresh_tokens(tokens)


@router.get("/me", response_model=UserResponse, dependencies=[Depends(get_current_user)])
async def get_current_user_info(
    current_user: User = Depends(get_authenticated_user)
):
    """Get current user information."""
    return UserResponse(
        uuid=current_user.uuid,
        email=current_user.email,
        role=current_user.role
    )
