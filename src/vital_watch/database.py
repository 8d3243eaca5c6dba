"""
Database engine and session management for the clinic metadata store.

Holds principals, appointments, prescription metadata rows and the audit
trail. Prescription document bytes never live here.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

def engine_options(database_url: str) -> dict:
    """Driver specific engine arguments."""
    if database_url.startswith("sqlite"):
        # Sync routes run in a threadpool, so one connection may serve several threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}

engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()

def get_db():
    """
    Database dependency - one session per request.

    Services commit or roll back themselves; the session is always closed here,
    also when the request fails.

    Yields:
        SQLAlchemy Session: Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
