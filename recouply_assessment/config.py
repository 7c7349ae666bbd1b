"""Configuration management using Pydantic Settings"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from recouply_assessment.domain.calculator import RATE_OPTIONS


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./recouply_assessment.db"

    # External Services
    webhook_url: Optional[str] = None  # unset: lead and share events are skipped

    # Service
    service_name: str = "recouply-assessment"
    log_level: str = "INFO"

    # Assessment form
    allowed_annual_rates: List[float] = list(RATE_OPTIONS)
    restrict_annual_rates: bool = False

    # Rate limiting
    rate_limiting_enabled: bool = True
    rate_limit_backend: str = "memory"  # memory | database

    # HTTP Client
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = Field(5, ge=1)
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds


settings = Settings()
