"""
@file: config.py
@description:
This module provides centralized configuration management for the Cloude backend API.
It loads environment variables and provides typed access to configuration settings
used throughout the application.

The configuration includes settings for:
- Application general settings (debug mode, environment, port)
- Supabase project access (URL, anon key, service role key, JWT secret)
- File storage (bucket name, upload size limit, default quota, signed URL lifetime)
- CORS origins for the frontend
- Logging parameters

@dependencies:
- pydantic: For settings validation
- pydantic_settings: For environment variable loading

@notes:
- All sensitive configuration is loaded from environment variables
- Default values are provided where appropriate so the app can boot in tests
- When SUPABASE_JWT_SECRET is set, access tokens are verified locally
"""

from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Provides typed access to all configuration parameters used in the application.
    """
    # Application Settings
    APP_ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)
    PORT: int = Field(default=5000)

    # Supabase
    SUPABASE_URL: str = Field(default="https://your_supabase_project_id.supabase.co")
    SUPABASE_ANON_KEY: str = Field(default="your_supabase_anon_key")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(default="your_supabase_service_role_key")
    SUPABASE_JWT_SECRET: Optional[str] = Field(default=None)
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_AUDIENCE: str = Field(default="authenticated")

    # Direct Postgres access, used only by the schema bootstrap script
    DATABASE_URL: Optional[str] = Field(default=None)

    # File storage
    STORAGE_BUCKET: str = Field(default="files")
    MAX_UPLOAD_SIZE: int = Field(default=50 * 1024 * 1024)
    DEFAULT_STORAGE_LIMIT: int = Field(default=1000 * 1024 * 1024)
    SIGNED_URL_EXPIRES_IN: int = Field(default=60)

    # CORS
    CORS_ORIGINS: List[str] = Field(default=[
        "http://localhost:3000",
        "https://cloude.vercel.app",
    ])

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: Optional[str]) -> str:
        """
        Upper-case the log level so `debug` and `DEBUG` behave the same.
        """
        if not v:
            return "INFO"
        return str(v).upper()

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"


# Create a global settings object
settings = Settings()

def get_settings() -> Settings:
    """
    Function to get the settings object for dependency injection in FastAPI.
    """
    return settings
