from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from fastapi import Request
from typing import Optional, Dict, Any
import logging

from .audit_models import AuditLog

logger = logging.getLogger(__name__)

def create_audit_log(
    db: Session,
    action: str,
    principal_id: Optional[int] = None,
    role: Optional[str] = None,
    request: Optional[Request] = None,
    details: Optional[Dict[str, Any]] = None
) -> Optional[AuditLog]:
    """
    Creates an audit log entry.

    Args:
        db: The database session.
        action: A string describing the action performed (e.g., 'LOGIN_SUCCESS', 'PRESCRIPTION_DOWNLOAD_DENIED').
        principal_id: The ID of the patient or doctor who performed the action (if known).
        role: The role of that principal (if known).
        request: The FastAPI request object to extract IP address (if available).
        details: A dictionary containing additional context or data related to the action.

    Returns:
        The created AuditLog object, or None when the entry could not be written.
    """
    ip_address = None
    if request and request.client:
        ip_address = request.client.host

    audit_entry = AuditLog(
        principal_id=principal_id,
        role=role,
        action=action,
        ip_address=ip_address,
        details=details
    )
    # The audit trail must never turn a successful operation into a failed one
    try:
        db.add(audit_entry)
        db.commit()
        db.refresh(audit_entry)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to write audit log entry {action}: {str(e)}")
        return None
    return audit_entry
