"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Interview Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # AI gateway (OpenAI-compatible chat completions)
    ai_base_url: str = "https://api.openai.com"
    ai_api_key: str = ""
    ai_chat_path: str = "/v1/chat/completions"
    ai_timeout_seconds: float = 60.0

    # Model selection by subscription tier
    default_ai_model: str = "gemini-1.5-flash"
    premium_ai_model: str = "gpt-4o"
    premium_tiers_str: str = Field(
        default="one-time,pro,premium,lifetime",
        validation_alias="premium_tiers",
    )

    # Retry policy for collaborator calls
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 10.0

    # Interview settings
    min_questions: int = 5
    max_questions: int = 15
    default_questions: int = 10
    min_answer_length: int = 10
    follow_up_probability: float = 0.3
    max_follow_ups_per_question: int = 2
    high_score_threshold: int = 70

    # Transcription (ML service or local Whisper)
    transcription_url: str = "http://localhost:8001"
    transcription_timeout_seconds: float = 60.0
    use_local_whisper: bool = False
    whisper_model: str = "base"

    # TTS configuration (live mode)
    tts_enabled: bool = True
    tts_voice: str = "en-US-AriaNeural"

    # Langfuse observability
    langfuse_enabled: bool = False
    langfuse_secret_key: str = ""
    langfuse_public_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # CORS - stored as comma-separated string in env
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @computed_field
    @property
    def premium_tiers(self) -> list[str]:
        """Subscription tiers that get the premium model."""
        return [tier.strip().lower() for tier in self.premium_tiers_str.split(",") if tier.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
