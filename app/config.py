import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

class Settings(BaseSettings):
    # Results backend settings
    RESULTS_API_BASE_URL: str = os.getenv("RESULTS_API_BASE_URL", "http://localhost:3001")
    RESULTS_API_TOKEN: Optional[str] = os.getenv("RESULTS_API_TOKEN")
    RESULTS_API_TIMEOUT: float = 30.0

    # Cohort cache lifetime (0 disables caching)
    RESULTS_CACHE_TTL_SECONDS: float = 60.0

    # Grading settings
    PASS_MARK: float = 50.0
    DEFAULT_GRADING_SCALE: str = "report_card"

    # CORS settings
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

# Create settings instance
settings = Settings()
