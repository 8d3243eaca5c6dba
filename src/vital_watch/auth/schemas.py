"""
Authentication Schemas - Pydantic models for registration, login and session data.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from .models import UserRole

class RegistrationRequest(BaseModel):
    """
    Registration Schema - Used for patient and doctor self-registration

    Fields:
    - role: Which kind of account to create
    - first_name / last_name: User's name
    - email: Login email (unique per role)
    - password: Plain text password (hashed before storage)
    - specialty / experience: Doctor-only professional details
    """
    role: UserRole
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72, description="bcrypt only uses the first 72 bytes")
    specialty: Optional[str] = Field(None, description="Doctor's medical specialty")
    experience: int = Field(0, ge=0, le=80, description="Doctor's years of experience")

class RegistrationResponse(BaseModel):
    """Identifier of the newly created account"""
    id: int
    role: UserRole

class LoginRequest(BaseModel):
    """
    Login Schema - Used for authentication

    The role is required: it selects which account table the email is looked up in.
    """
    role: UserRole
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    """Session token handed out at login"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")

class AuthContext(BaseModel):
    """Authenticated subject of the current request"""
    model_config = ConfigDict(frozen=True)

    subject_id: int
    role: UserRole
