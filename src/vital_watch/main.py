"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import Base, engine
from .auth.dependencies import get_auth_context
from .auth.router import router as auth_router
from .appointments.router import router as appointments_router
from .doctors.router import router as doctors_router
from .patients.router import router as patients_router
from .prescriptions.router import router as prescriptions_router
from .prescriptions.dependencies import get_task_runner
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
# Import all models here for creating tables
from .patients.models import Patient  # noqa: F401
from .doctors.models import Doctor  # noqa: F401
from .appointments.models import Appointment  # noqa: F401
from .prescriptions.models import Prescription  # noqa: F401
from .core.audit_models import AuditLog  # noqa: F401

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Vital Watch API...")
    yield
    # Let pending compensating deletes finish before the process exits
    logger.info("Shutting down background task runner")
    get_task_runner().shutdown(wait=True)

# Create FastAPI application
app = FastAPI(
    title="Vital Watch API",
    description="API for the Vital Watch clinic appointment system",
    version="1.0.0",
    lifespan=lifespan
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Every router except auth sits behind the authorization gate
protected = [Depends(get_auth_context)]

# Include routers
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(doctors_router, prefix="/api/v1/doctors", tags=["Doctors"], dependencies=protected)
app.include_router(appointments_router, prefix="/api/v1/appointments", tags=["Appointments"], dependencies=protected)
app.include_router(patients_router, prefix="/api/v1/patients", tags=["Patients"], dependencies=protected)
app.include_router(prescriptions_router, prefix="/api/v1/prescriptions", tags=["Prescriptions"], dependencies=protected)

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Vital Watch API"}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy"}
