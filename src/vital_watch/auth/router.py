"""
Authentication routes for the clinic system.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import Union
import logging

from ..database import get_db
from ..exceptions import ResourceNotFoundError
from ..core.security import TokenConfig
from ..doctors.schemas import DoctorResponse
from ..patients.schemas import PatientResponse
from .dependencies import get_auth_context, get_session_issuer, get_token_config
from .models import UserRole
from .schemas import AuthContext, LoginRequest, RegistrationRequest, RegistrationResponse, TokenResponse
from .service import SessionIssuer, get_principal_by_id, register_principal

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter()

@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED, summary="Patient or Doctor Self-Registration")
def register_route(
    registration: RegistrationRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Create a patient or doctor account.

    The `role` field decides which kind of account is created. Doctor accounts
    may also carry `specialty` and `experience`.
    """
    principal = register_principal(db, registration, request=request)
    return RegistrationResponse(id=principal.get_id(), role=registration.role)

@router.post("/login", response_model=TokenResponse, summary="User Login")
def login_route(
    login_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
    token_config: TokenConfig = Depends(get_token_config)
):
    """
    Exchange role, email and password for a session token.

    A wrong email and a wrong password produce the same 401 response.
    """
    token = issuer.issue_session(
        db,
        role=login_data.role,
        email=str(login_data.email),
        password=login_data.password,
        request=request
    )
    return TokenResponse(access_token=token, expires_in=int(token_config.ttl.total_seconds()))

@router.get("/me", response_model=Union[PatientResponse, DoctorResponse], summary="Get Current User Profile")
def get_current_profile(
    context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Return the profile of the authenticated patient or doctor.
    """
    principal = get_principal_by_id(db, context.role, context.subject_id)
    if principal is None:
        raise ResourceNotFoundError(f"{context.role.value.capitalize()} profile not found")
    if context.role == UserRole.DOCTOR:
        return DoctorResponse.model_validate(principal)
    return PatientResponse.model_validate(principal)
