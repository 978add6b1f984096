from fastapi import Request
from datetime import timedelta
from typing import Optional
from uuid import UUID
import logging

from ..core.config import Settings
from ..core.exceptions import ValidationError
from ..core.security import (
    AuthenticationError, SigningKeys, TokenPair, TokenPayload, TokenType,
    UserRole, create_token_pair, verify_token
)
from ..models.user import User
from ..repositories.user_repository import UserRepository
from ..schemas.auth import Credentials, RefreshTokensRequest

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthService:
    """Stateless credential and token handling."""

    def __init__(self, repository: UserRepository, keys: SigningKeys, settings: Settings):
        self.repository = repository
        self.keys = keys
        self.settings = settings

    def authenticate(self, credentials: Credentials) -> TokenPair:
        """Authenticate user by email and password and return tokens."""
        if not credentials.email.strip():
            raise ValidationError("email", "required")
        if not credentials.password:
            raise ValidationError("password", "required")

        user = self.repository.find_by_email(credentials.email)
        if not user:
            raise AuthenticationError("Invalid email or password")

        if not self.repository.check_password(credentials.email, credentials.password):
            raise AuthenticationError("Invalid email or password")

        logger.info(f"User {user.uuid} authenticated")
        return self._issue_tokens(user)

    def validate_token(self, token: str) -> User:
        """Verify an access token and resolve the user it was issued to."""
        if token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):]

        payload = self._verify(token)
        if not payload or payload.typ != TokenType.ACCESS.value:
            raise AuthenticationError("Invalid or expired token")

        return self._resolve_subject(payload)

    def refresh_tokens(self, tokens: RefreshTokensRequest) -> TokenPair:
        """Issue a brand-new token pair from a valid refresh token."""
        if not tokens.access_token:
            raise ValidationError("access_token", "required")
        if not tokens.refresh_token:
            raise ValidationError("refresh_token", "required")
        if not tokens.grant_type:
            raise ValidationError("grant_type", "required")
        if tokens.grant_type != "refresh_token":
            raise ValidationError("grant_type", "invalid")

        payload = self._verify(tokens.refresh_token)
        if not payload or payload.typ != TokenType.REFRESH.value:
            raise AuthenticationError("Invalid or expired refresh token")

        user = self._resolve_subject(payload)
        return self._issue_tokens(user)

    def get_authenticated_user(self, request: Request) -> User:
        """Return the user attached to the request by token validation."""
        user = getattr(request.state, "user", None)
        if user is None:
            raise AuthenticationError()
        return user

    def _verify(self, token: str) -> Optional[TokenPayload]:
        return verify_token(
            token,
            self.keys,
            issuer=self.settings.JWT_ISSUER,
            audience=self.settings.JWT_AUDIENCE,
            algorithm=self.settings.JWT_ALGORITHM,
        )

    def _resolve_subject(self, payload: TokenPayload) -> User:
        try:
            subject = UUID(payload.sub or "")
        except ValueError:
            raise AuthenticationError("Invalid token payload")

        user = self.repository.find_by_uuid(subject)
        if not user:
            raise AuthenticationError("User not found")
        return user

    def _issue_tokens(self, user: User) -> TokenPair:
        return create_token_pair(
            subject=str(user.uuid),
            role=UserRole(user.role),
            keys=self.keys,
            issuer=self.settings.JWT_ISSUER,
            audience=self.settings.JWT_AUDIENCE,
            access_expires=timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_expires=timedelta(hours=self.settings.REFRESH_TOKEN_EXPIRE_HOURS),
            algorithm=self.settings.JWT_ALGORITHM,
        )
