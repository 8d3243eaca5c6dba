"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string for the metadata store
        secret_key: Shared secret used to sign session tokens (HS256)
        token_issuer: Value of the `iss` claim written to and required from tokens
        access_token_expire_days: Session token validity window in days
        password_hash_rounds: bcrypt cost factor used for new password hashes

        # Blob store settings
        cloudinary_cloud_name: Cloudinary cloud name
        cloudinary_api_key: Cloudinary API key
        cloudinary_api_secret: Cloudinary API secret
        storage_bucket: Folder (bucket identifier) under which documents are stored
        max_upload_size: Largest accepted document upload, in bytes
        compensation_workers: Threads available for compensating blob deletes

        # HTTP settings
        cors_origins: Origins allowed by the CORS middleware
        log_level: Root logging level
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database settings
    database_url: str

    # Session token settings
    secret_key: str
    token_issuer: str = "vital-watch"
    access_token_expire_days: int = 7
    password_hash_rounds: int = 12

    # Blob store settings
    cloudinary_cloud_name: str
    cloudinary_api_key: str
    cloudinary_api_secret: str
    storage_bucket: str = "prescriptions"
    max_upload_size: int = 10 * 1024 * 1024
    compensation_workers: int = 2

    # HTTP settings
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    @field_validator("storage_bucket")
    @classmethod
    def strip_bucket_slashes(cls, v: str) -> str:
        bucket = v.strip("/")
        if not bucket:
            raise ValueError("STORAGE_BUCKET must not be empty")
        return bucket

    @field_validator("password_hash_rounds")
    @classmethod
    def validate_rounds(cls, v: int) -> int:
        # bcrypt accepts cost factors 4..31
        if not 4 <= v <= 31:
            raise ValueError("PASSWORD_HASH_ROUNDS must be between 4 and 31")
        return v

# Create settings instance
settings = Settings()
