"""Service configuration settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    service_name: str = "rahat-case-service"
    environment: str = "development"
    port: int = 3030
    base_url: str = "http://localhost:3030"

    # Database configuration
    database_url: str = "sqlite+aiosqlite:///./rahat_cases.db"
    case_storage_type: str = "inmemory"

    # Collaborating services
    auth_url: str = "http://localhost:3000"
    file_url: str = "http://localhost:3040"
    identity_provider: str = "gateway"
    auth_timeout_seconds: float = 10.0

    # Pagination defaults
    default_page_size: int = 10
    max_page_size: int = 100

    # Workflow
    compensation_amount: int = 150000  # ₹1.5 lakh
    case_id_max_attempts: int = 10

    # CORS configuration
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def file_url_prefix(self) -> str:
        """Prefix every uploaded document URL must carry."""
        return f"{self.file_url.rstrip('/')}/api/v1/files/"


# Global settings instance
settings = Settings()
