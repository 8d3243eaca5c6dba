"""
Core security utilities for password handling and session token encoding.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict
import logging

from ..config import Settings, settings
from ..auth.models import UserRole
from ..auth.exceptions import TokenError, TokenErrorReason, TokenSigningError

# Set up logging
logger = logging.getLogger(__name__)

# Session tokens are always HMAC-SHA256; tokens declaring any other algorithm are rejected
TOKEN_ALGORITHM = "HS256"

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.password_hash_rounds
)

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash, False otherwise (including unreadable hashes)
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Stored password hash could not be verified: {str(e)}")
        return False

def dummy_verify_password() -> None:
    """Spend the same time as a real verification when there is no stored hash."""
    pwd_context.dummy_verify()


@dataclass(frozen=True)
class TokenConfig:
    """
    Signing configuration shared by the session issuer and the authorization gate.

    Built once at startup; never mutated.
    """
    secret_key: str
    issuer: str = "vital-watch"
    ttl: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "TokenConfig":
        return cls(
            secret_key=app_settings.secret_key,
            issuer=app_settings.token_issuer,
            ttl=timedelta(days=app_settings.access_token_expire_days)
        )


class SessionClaims(BaseModel):
    """Claims carried by a session token"""
    model_config = ConfigDict(frozen=True)

    sub: int
    role: UserRole
    iat: int
    exp: int
    iss: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClaimsCodec:
    """
    Encodes and decodes signed session tokens (JWT, HS256).

    The signature covers the header and every claim, so altering any claim
    invalidates the token.
    """

    def __init__(self, config: TokenConfig, clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self._clock = clock or _utcnow

    def mint(self, subject_id: int, role: UserRole) -> str:
        """
        Build and sign claims for a subject, valid for the configured window.

        Args:
            subject_id: Principal id to put in `sub`
            role: Principal role to put in `role`

        Returns:
            str: Signed token
        """
        now = self._clock()
        claims = SessionClaims(
            sub=subject_id,
            role=role,
            iat=int(now.timestamp()),
            exp=int((now + self.config.ttl).timestamp()),
            iss=self.config.issuer
        )
        return self.encode(claims)

    def encode(self, claims: SessionClaims) -> str:
        """
        Sign claims into a token string.

        Raises:
            TokenSigningError: If the signing secret is missing or unusable
        """
        if not self.config.secret_key:
            raise TokenSigningError("Token signing secret is not configured")
        try:
            return jwt.encode(claims.model_dump(mode="json"), self.config.secret_key, algorithm=TOKEN_ALGORITHM)
        except JWTError as e:
            raise TokenSigningError(f"Token signing failed: {str(e)}") from e

    def decode(self, token: str) -> SessionClaims:
        """
        Verify a token and return its claims.

        Args:
            token: Token string (without the "Bearer " prefix)

        Returns:
            SessionClaims: Verified claims

        Raises:
            TokenError: INVALID for bad signature, algorithm, issuer or expiry;
                INVALID_CLAIMS when subject or role are missing or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[TOKEN_ALGORITHM],
                issuer=self.config.issuer,
                options={
                    # `sub` is numeric here; the library only accepts string subjects
                    "verify_sub": False,
                    "require_exp": True,
                    "require_iat": True,
                    "require_iss": True,
                }
            )
        except ExpiredSignatureError as e:
            raise TokenError(TokenErrorReason.INVALID, "token expired") from e
        except JWTError as e:
            raise TokenError(TokenErrorReason.INVALID, str(e)) from e

        subject_id = _parse_subject(payload.get("sub"))
        if subject_id is None:
            raise TokenError(TokenErrorReason.INVALID_CLAIMS, "subject missing or not numeric")

        try:
            role = UserRole(payload.get("role"))
        except ValueError:
            raise TokenError(TokenErrorReason.INVALID_CLAIMS, "role missing or unknown")

        return SessionClaims(
            sub=subject_id,
            role=role,
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
            iss=payload["iss"]
        )


def _parse_subject(value) -> Optional[int]:
    """Return the subject as an int, or None when it is not an integer value."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None
