"""
FastAPI dependencies for authentication and authorization.

The AuthorizationGate is applied to every protected router. It only looks at
the Authorization header and the token inside it; it never touches the database.
"""
from functools import lru_cache
from typing import List, Optional
import logging
from fastapi import Depends, Request

from ..config import settings
from ..core.security import ClaimsCodec, TokenConfig
from .exceptions import AuthorizationError, TokenError, TokenErrorReason
from .models import UserRole
from .schemas import AuthContext
from .service import SessionIssuer

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"

@lru_cache()
def get_token_config() -> TokenConfig:
    """Signing configuration, built once from settings."""
    return TokenConfig.from_settings(settings)

def get_claims_codec(config: TokenConfig = Depends(get_token_config)) -> ClaimsCodec:
    return ClaimsCodec(config)

def get_session_issuer(codec: ClaimsCodec = Depends(get_claims_codec)) -> SessionIssuer:
    return SessionIssuer(codec)


class AuthorizationGate:
    """
    Turns an Authorization header into an authenticated subject, or refuses it.
    """

    def __init__(self, codec: ClaimsCodec):
        self.codec = codec

    def check_header(self, authorization: Optional[str]) -> AuthContext:
        """
        Validate a raw Authorization header value.

        Args:
            authorization: Header value, or None when the header is absent

        Returns:
            AuthContext: Subject id and role from the token

        Raises:
            TokenError: MISSING, MALFORMED, INVALID or INVALID_CLAIMS
        """
        if not authorization:
            raise TokenError(TokenErrorReason.MISSING)

        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
            raise TokenError(TokenErrorReason.MALFORMED)

        return self.authorize(parts[1])

    def authorize(self, token: str) -> AuthContext:
        """
        Validate a bare token.

        Raises:
            TokenError: INVALID or INVALID_CLAIMS
        """
        claims = self.codec.decode(token)
        return AuthContext(subject_id=claims.sub, role=claims.role)


def get_auth_context(request: Request, codec: ClaimsCodec = Depends(get_claims_codec)) -> AuthContext:
    """
    Authenticate the current request.

    Stores the subject id and role on `request.state` for the rest of the request.

    Returns:
        AuthContext: Authenticated subject
    """
    context = AuthorizationGate(codec).check_header(request.headers.get("Authorization"))
    request.state.subject_id = context.subject_id
    request.state.role = context.role
    return context

def require_roles(allowed_roles: List[UserRole]):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: List of roles that are allowed access

    Returns:
        Function that checks if the caller has a required role
    """
    def role_checker(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if context.role not in allowed_roles:
            raise AuthorizationError(
                f"Role {context.role.value} not allowed; required one of {[role.value for role in allowed_roles]}"
            )
        return context
    return role_checker

# Convenience dependencies for specific roles
require_patient = require_roles([UserRole.PATIENT])
require_doctor = require_roles([UserRole.DOCTOR])
