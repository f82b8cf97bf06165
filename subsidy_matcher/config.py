"""
Configuration settings for the Subsidy Matching Service
"""
from functools import lru_cache
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # MongoDB Configuration
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_db_name: str = Field(default="subsidies_db")
    subsidies_collection: str = Field(default="subsidies")
    profiles_collection: str = Field(default="profiles")
    compliance_collection: str = Field(default="compliance_events")

    # AI provider (OpenAI-compatible chat completions)
    ai_api_key: Optional[str] = Field(default=None)
    ai_base_url: str = Field(default="https://api.mistral.ai/v1")
    ai_model: str = Field(default="mistral-small-latest")
    ai_validation_model: Optional[str] = Field(default=None)
    ai_temperature: float = Field(default=0.2)
    ai_max_tokens: int = Field(default=8192)
    ai_timeout_seconds: float = Field(default=25.0)
    ai_batch_timeout_seconds: float = Field(default=60.0)
    ai_max_attempts: int = Field(default=3)
    ai_backoff_base_seconds: float = Field(default=1.0)
    ai_backoff_max_seconds: float = Field(default=8.0)
    ai_max_concurrency: int = Field(default=4)
    ai_rerank_batch_size: int = Field(default=1)
    ai_use_streaming: bool = Field(default=False)

    # Matching pipeline
    db_query_limit: int = Field(default=100)
    sector_query_limit: int = Field(default=60)
    national_query_limit: int = Field(default=50)
    pre_score_min: int = Field(default=10)
    pre_scored_limit: int = Field(default=30)
    default_match_limit: int = Field(default=20)

    # Template inheritance
    similarity_threshold: float = Field(default=0.6)
    min_validation_confidence: int = Field(default=70)
    inheritance_batch_size: int = Field(default=20)
    inheritance_analyze_limit: int = Field(default=500)
    inheritance_delay_seconds: float = Field(default=0.5)

    # Application Configuration
    app_name: str = Field(default="Subsidy Matching Service")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    api_prefix: str = Field(default="/api/v1")
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:8080")

    @property
    def validation_model(self) -> str:
        """Model used for criteria-inheritance validation"""
        return self.ai_validation_model or self.ai_model

    def get_cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        if ',' in self.cors_origins:
            return [origin.strip() for origin in self.cors_origins.split(',')]
        return [self.cors_origins.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once at startup"""
    return Settings()
