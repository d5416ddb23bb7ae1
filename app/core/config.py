from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database settings
    database_url: str = "sqlite:///./rentals.db"
    # Create missing tables at startup instead of running migrations
    auto_create_tables: bool = False

    # Security settings (REQUIRED for production)
    secret_key: str  # Must be set in environment - no default for security
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    # Token endpoint of the external identity provider, shown in the API docs
    token_url: str = "/auth/token"

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Moderation settings
    # Principals that receive the admin role when they first save a profile
    bootstrap_admin_principals: List[str] = []
    moderation_rate_limit: str = "20/minute"
    rate_limit_enabled: bool = True

    # Application settings
    app_name: str = "Rental Listing Moderation Service"
    debug: bool = False
    testing: bool = False
    log_level: str = "INFO"
    log_format: Optional[str] = None

    class Config:
        env_file = ".env"


settings = Settings()
