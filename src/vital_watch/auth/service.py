"""
Authentication service layer for business logic.
"""
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import Request
from typing import Dict, Optional, Type

from ..core.security import ClaimsCodec, hash_password, verify_password, dummy_verify_password
from ..core.audit_service import create_audit_log
from ..patients.models import Patient
from ..doctors.models import Doctor
from .models import Principal, UserRole
from .schemas import RegistrationRequest
from .exceptions import CredentialError, EmailAlreadyExistsError

# Set up logging
logger = logging.getLogger(__name__)

# The only two principal types; the caller's role picks one, it is never guessed
PRINCIPAL_MODELS: Dict[UserRole, Type[Principal]] = {
    UserRole.PATIENT: Patient,
    UserRole.DOCTOR: Doctor,
}

def get_principal_by_email(db: Session, role: UserRole, email: str) -> Optional[Principal]:
    """Look up a patient or doctor by login email."""
    model = PRINCIPAL_MODELS[role]
    return db.query(model).filter(model.email == email).first()

def get_principal_by_id(db: Session, role: UserRole, principal_id: int) -> Optional[Principal]:
    """Look up a patient or doctor by id."""
    return db.get(PRINCIPAL_MODELS[role], principal_id)

def verify_credentials(principal: Optional[Principal], password: str) -> bool:
    """
    Check a presented password against a principal's stored hash.

    When there is no principal a dummy verification still runs, so an unknown
    email costs the same time as a wrong password.

    Args:
        principal: Patient or Doctor found by email, or None
        password: Plain text password

    Returns:
        bool: True only if the principal exists and the password matches
    """
    if principal is None:
        dummy_verify_password()
        return False
    return verify_password(password, principal.hashed_credential())


class SessionIssuer:
    """
    Issues session tokens for principals that present valid credentials.
    """

    def __init__(self, codec: ClaimsCodec):
        self.codec = codec

    def issue_session(
        self,
        db: Session,
        role: UserRole,
        email: str,
        password: str,
        request: Optional[Request] = None
    ) -> str:
        """
        Authenticate a principal and mint a session token.

        Args:
            db: Database session
            role: Explicit role discriminator supplied by the caller
            email: Login email
            password: Plain text password
            request: FastAPI request object for audit logging

        Returns:
            str: Signed session token

        Raises:
            CredentialError: If the email is unknown for that role or the password is wrong
            TokenSigningError: If the signing secret is misconfigured
        """
        principal = get_principal_by_email(db, role, email)

        if not verify_credentials(principal, password):
            create_audit_log(
                db,
                action="LOGIN_FAILED_INVALID_CREDENTIALS",
                principal_id=principal.get_id() if principal else None,
                role=role.value,
                request=request,
                details={"email": email, "principal_exists": principal is not None}
            )
            raise CredentialError(f"Login failed for {role.value} {email}")

        token = self.codec.mint(principal.get_id(), role)

        logger.info(f"Login successful: {role.value} {principal.get_id()}")
        create_audit_log(db, action="LOGIN_SUCCESS", principal_id=principal.get_id(), role=role.value, request=request)
        return token


def register_principal(
    db: Session,
    registration: RegistrationRequest,
    request: Optional[Request] = None
) -> Principal:
    """
    Register a new patient or doctor.

    Args:
        db: Database session
        registration: Validated registration payload
        request: FastAPI request object for audit logging

    Returns:
        The created Patient or Doctor

    Raises:
        EmailAlreadyExistsError: If the email is already registered for that role
    """
    role = registration.role
    email = str(registration.email)
    logger.info(f"{role.value.capitalize()} registration attempt for email: {email}")

    if get_principal_by_email(db, role, email) is not None:
        raise EmailAlreadyExistsError()

    fields = {
        "email": email,
        "first_name": registration.first_name,
        "last_name": registration.last_name,
        "password_hash": hash_password(registration.password),
    }
    if role == UserRole.DOCTOR:
        fields.update(specialty=registration.specialty, experience=registration.experience)

    principal = PRINCIPAL_MODELS[role](**fields)
    db.add(principal)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.rollback()
        raise EmailAlreadyExistsError()
    db.refresh(principal)

    logger.info(f"{role.value.capitalize()} account created: {principal.get_id()}")
    create_audit_log(db, action="REGISTRATION_SUCCESS", principal_id=principal.get_id(), role=role.value, request=request)
    return principal
