from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from functools import lru_cache
from typing import Optional

from ..core.config import Settings, get_settings, settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, AuthenticationError, AuthorizationError, SigningKeys, UserRole
)
from ..models.user import User
from ..repositories.calendar_repository import CalendarRepository
from ..repositories.user_repository import UserRepository
from ..services.auth_service import AuthService
from ..services.calendar_service import CalendarService


@lru_cache
def get_signing_keys() -> SigningKeys:
    """Load the token signing key pair once per process."""
    return SigningKeys.from_file(settings.PRIVATE_KEY_FILE)


def get_auth_service(
    db: Session = Depends(get_db),
    keys: SigningKeys = Depends(get_signing_keys),
    app_settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(UserRepository(db), keys, app_settings)


def get_calendar_service(db: Session = Depends(get_db)) -> CalendarService:
    return CalendarService(CalendarRepository(db))


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """Validate the bearer token and attach its user to the request."""
    if credentials is None:
        raise AuthenticationError("Missing bearer token")

    user = auth_service.validate_token(credentials.credentials)
    request.state.user = user
    return user


async def get_authenticated_user(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """Get the user attached to the request by get_current_user."""
    return auth_service.get_authenticated_user(request)


# Role-based access control dependencies
def require_role(allowed_role: UserRole):
    """Create a dependency that requires a specific user role."""
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role != allowed_role:
            raise AuthorizationError(
                f"Access denied. Required role: {allowed_role.value}"
            )
        return current_user

    return role_checker


# Specific role dependencies
async def get_doctor_user(
    current_user: User = Depends(require_role(UserRole.DOCTOR))
) -> User:
    """Require doctor role."""
    return current_user


async def get_patient_user(
    current_user: User = Depends(require_role(UserRole.PATIENT))
) -> User:
    """Require patient role."""
    return current_user


# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client=Depends(get_redis),
    app_settings: Settings = Depends(get_settings)
) -> None:
    """Fixed window rate limiting for login attempts, per client IP."""
    if app_settings.LOGIN_RATE_LIMIT <= 0:
        return

    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:login:{client_ip}"

    current_requests = redis_client.incr(key)
    if current_requests == 1:
        redis_client.expire(key, app_settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS)

    if current_requests > app_settings.LOGIN_RATE_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
