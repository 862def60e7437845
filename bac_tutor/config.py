# FILE: bac_tutor/config.py
"""
Configuration management for the BAC Tutor backend
Loads from environment variables with validation
"""
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    # Backend server
    backend_host: str = Field(default="0.0.0.0", alias="BACKEND_HOST")
    backend_port: int = Field(default=8000, alias="BACKEND_PORT")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Record store
    record_store: str = Field(default="supabase", alias="RECORD_STORE")
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(default=None, alias="SUPABASE_SERVICE_ROLE_KEY")
    supabase_timeout: float = Field(default=15.0, alias="SUPABASE_TIMEOUT")
    data_dir: str = Field(default="./data", alias="DATA_DIR")

    # Completion service
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash-latest", alias="GEMINI_MODEL")

    # Quiz pages
    quiz_list_route: str = Field(default="/quizzes", alias="QUIZ_LIST_ROUTE")

    # Security
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_rpm: int = Field(default=30, alias="RATE_LIMIT_RPM")
    body_size_limit_kb: int = Field(default=64, alias="BODY_SIZE_LIMIT_KB")

    # CORS
    cors_origins: List[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_headers: List[str] = Field(
        default=["authorization", "x-client-info", "apikey", "content-type"],
        alias="CORS_HEADERS"
    )

    # Validators
    @field_validator("record_store")
    @classmethod
    def validate_record_store(cls, v):
        v = v.strip().lower()
        if v not in ["supabase", "local"]:
            raise ValueError("record_store must be 'supabase' or 'local'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        v = v.strip().upper()
        if v not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be a standard logging level name")
        return v

    @field_validator("rate_limit_rpm", "body_size_limit_kb")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("limits must be at least 1")
        return v


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create singleton settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings (useful for testing)"""
    global _settings
    _settings = None
    return get_settings()
