"""Application configuration via Pydantic Settings."""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # Anthropic (image analysis + Q&A generation)
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    GENERATION_MAX_TOKENS: int = 8000
    IMAGE_ANALYSIS_MAX_TOKENS: int = 2000
    IMAGE_ANALYSIS_MAX_IMAGES: int = 5
    RESEARCH_MAX_TOKENS: int = 500

    # Lightweight fetch / retry policy
    FETCH_MAX_ATTEMPTS: int = 5
    FETCH_BASE_TIMEOUT_SECONDS: float = 30.0
    FETCH_TIMEOUT_STEP_SECONDS: float = 15.0
    FETCH_BASE_DELAY_SECONDS: float = 3.0
    FETCH_DELAY_CAP_SECONDS: float = 15.0
    FETCH_RATE_LIMIT_COOLDOWN_SECONDS: float = 10.0
    FETCH_MAX_REDIRECTS: int = 10
    FETCH_MAX_BYTES: int = 50 * 1024 * 1024  # 50 MiB
    FETCH_ACCEPT_LANGUAGE: str = "ja-JP,ja;q=0.9,en-US;q=0.8,en;q=0.7"

    # Browser rendering fallback
    RENDER_HEADLESS: bool = True
    RENDER_NAVIGATION_TIMEOUT_SECONDS: float = 60.0
    RENDER_SETTLE_SECONDS: float = 1.5
    RENDER_CLOSE_GRACE_SECONDS: float = 5.0

    # Extraction limits
    EXTRACT_MAX_IMAGES: int = 15
    EXTRACT_MAX_BODY_CHARS: int = 10000
    EXTRACT_DETAIL_MIN_CHARS: int = 10
    EXTRACT_DETAIL_MAX_CHARS: int = 5000

    # Request limits
    MARKUP_MAX_CHARS: int = 2_000_000
    QA_COUNT_MIN: int = 10
    QA_COUNT_MAX: int = 100
    QA_COUNT_DEFAULT: int = 100

    def get_cors_origins(self) -> List[str]:
        """Origins allowed to call the API from a browser.

        Returns:
            List of origin URLs, the configured frontend first
        """
        origins = [self.FRONTEND_URL, "http://localhost:3000"]
        return list(dict.fromkeys(o for o in origins if o))


settings = Settings()
