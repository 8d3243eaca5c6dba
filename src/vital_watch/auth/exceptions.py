"""
Authentication-specific exceptions.

Every authentication or authorization failure produces the same external
response so callers cannot learn why they were refused.
"""
from fastapi import status
import enum
import logging
from ..exceptions import AppException

NOT_AUTHORIZED = "Not authorized"
BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}

class TokenErrorReason(str, enum.Enum):
    """Internal cause of a token rejection. Logged, never returned."""
    MISSING = "missing credentials"
    MALFORMED = "malformed credentials"
    INVALID = "invalid token"
    INVALID_CLAIMS = "invalid claims"

class CredentialError(AppException):
    """Exception raised when email or password is wrong. Both cases look identical."""
    log_level = logging.WARNING

    def __init__(self, internal_detail: str = None):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid credentials",
            internal_detail=internal_detail,
            headers=BEARER_CHALLENGE
        )

class TokenError(AppException):
    """Exception raised when the bearer token is missing, malformed, invalid or expired."""
    log_level = logging.WARNING

    def __init__(self, reason: TokenErrorReason, internal_detail: str = None):
        message = reason.value if not internal_detail else f"{reason.value}: {internal_detail}"
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            NOT_AUTHORIZED,
            internal_detail=message,
            headers=BEARER_CHALLENGE
        )
        self.reason = reason

class AuthorizationError(AppException):
    """
    Exception raised when an authenticated caller may not perform an operation.

    For document access this is also what a missing document looks like.
    """
    log_level = logging.WARNING

    def __init__(self, internal_detail: str = "Permission denied"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            NOT_AUTHORIZED,
            internal_detail=internal_detail,
            headers=BEARER_CHALLENGE
        )

class TokenSigningError(AppException):
    """Exception raised when the signing secret is misconfigured."""

    def __init__(self, internal_detail: str):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate token",
            internal_detail=internal_detail
        )

class EmailAlreadyExistsError(AppException):
    """Exception raised when email already exists."""
    log_level = logging.WARNING

    def __init__(self, detail: str = "Email already registered"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)
