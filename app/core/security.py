from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from jose import JWTError, jwt, jwk
from passlib.context import CryptContext
from cryptography.hazmat.primitives import serialization
from fastapi import status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from enum import Enum
import hashlib
import json
import uuid

from .exceptions import APIError

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security
security = HTTPBearer(auto_error=False)


class UserRole(str, Enum):
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class TokenPayload(BaseModel):
    iss: Optional[str] = None
    aud: Optional[str] = None
    jti: Optional[str] = None
    sub: Optional[str] = None
    role: Optional[str] = None
    typ: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None


@dataclass(frozen=True)
class TokenClaims:
    """Everything needed to mint one signed token."""

    issuer: str
    audience: str
    subject: str
    role: UserRole
    token_type: TokenType
    expires_in: timedelta

    def validate(self) -> None:
        for name in ("issuer", "audience", "subject"):
            if not getattr(self, name):
                raise ValueError(f"token claim '{name}' is required")
        if self.expires_in <= timedelta(0):
            raise ValueError("token expiration must be in the future")


@dataclass(frozen=True)
class SigningKeys:
    """RSA key pair used to sign and verify tokens."""

    private_key: str
    public_key: str
    key_id: str

    @classmethod
    def from_private_key(cls, private_key_pem: str) -> "SigningKeys":
        public_key_pem = public_key_from_private(private_key_pem)
        return cls(
            private_key=private_key_pem,
            public_key=public_key_pem,
            key_id=key_thumbprint(public_key_pem),
        )

    @classmethod
    def from_file(cls, path: str) -> "SigningKeys":
        return cls.from_private_key(Path(path).read_text())


# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


# Key utilities
def public_key_from_private(private_key_pem: str) -> str:
    """Derive the PEM encoded public key of an RSA private key."""
    private_key = serialization.load_pem_private_key(private_key_pem.encode(), password=None)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def key_thumbprint(public_key_pem: str, algorithm: str = "RS512") -> str:
    """RFC 7638 SHA-256 thumbprint of an RSA public key, hex encoded."""
    jwk_dict = jwk.construct(public_key_pem, algorithm=algorithm).to_dict()
    canonical = json.dumps(
        {"e": jwk_dict["e"], "kty": "RSA", "n": jwk_dict["n"]},
        separators=(",", ":"),
        sort_keys=True,
    )
    return hashlib.sha256(canonical.encode()).hexdigest()


# JWT utilities
def build_token(claims: TokenClaims, keys: SigningKeys, algorithm: str = "RS512") -> str:
    """Create a signed JWT from the given claims."""
    claims.validate()
    issued_at = datetime.now(timezone.utc)

    to_encode = {
        "iss": claims.issuer,
        "aud": claims.audience,
        "jti": str(uuid.uuid4()),
        "sub": claims.subject,
        "role": claims.role.value,
        "typ": claims.token_type.value,
        "iat": issued_at,
        "exp": issued_at + claims.expires_in,
    }

    return jwt.encode(
        to_encode,
        keys.private_key,
        algorithm=algorithm,
        headers={"kid": keys.key_id},
    )


def verify_token(
    token: str,
    keys: SigningKeys,
    issuer: str,
    audience: str,
    algorithm: str = "RS512",
) -> Optional[TokenPayload]:
    """Verify and decode JWT token. Expired tokens do not verify."""
    try:
        payload = jwt.decode(
            token,
            keys.public_key,
            algorithms=[algorithm],
            issuer=issuer,
            audience=audience,
        )

        return TokenPayload(**payload)

    except JWTError:
        return None


def create_token_pair(
    subject: str,
    role: UserRole,
    keys: SigningKeys,
    issuer: str,
    audience: str,
    access_expires: timedelta,
    refresh_expires: timedelta,
    algorithm: str = "RS512",
) -> TokenPair:
    """Create both access and refresh tokens."""
    access_token = build_token(
        TokenClaims(
            issuer=issuer,
            audience=audience,
            subject=subject,
            role=role,
            token_type=TokenType.ACCESS,
            expires_in=access_expires,
        ),
        keys,
        algorithm,
    )
    refresh_token = build_token(
        TokenClaims(
            issuer=issuer,
            audience=audience,
            subject=subject,
            role=role,
            token_type=TokenType.REFRESH,
            expires_in=refresh_expires,
        ),
        keys,
        algorithm,
    )

    return TokenPair(access_token=access_token, refresh_token=refresh_token)


# Security exceptions
class AuthenticationError(APIError):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(APIError):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )
