from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from sqlalchemy.sql import func

from ..database import Base

class AuditLog(Base):
    """
    One security relevant event: a login attempt, a registration, an appointment
    change, or a prescription upload, download or refused download.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_principal", "role", "principal_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Principals live in two tables, so the subject is stored as (role, id) without a foreign key
    principal_id = Column(Integer, nullable=True)
    role = Column(String, nullable=True)
    action = Column(String, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, {self.role}={self.principal_id}, action='{self.action}')>"
