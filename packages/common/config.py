"""
Application configuration using Pydantic Settings
Reads from environment variables and .env file
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    db_user: str = Field(default="kitchen_admin", alias="DB_USER")
    db_password: str = Field(default="", alias="DB_PASSWORD")
    db_name: str = Field(default="ingredient_dictionary", alias="DB_NAME")
    db_host: str = Field(default="postgres", alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT")
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @property
    def database_url(self) -> str:
        """Construct database URL (DATABASE_URL wins when set)"""
        if self.database_url_override:
            return self.database_url_override
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Application
    environment: str = Field(default="production", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # AI classification (Anthropic)
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    ai_model: str = Field(default="claude-3-5-haiku-latest", alias="AI_MODEL")
    ai_timeout_seconds: float = Field(default=5.0, gt=0, alias="AI_TIMEOUT_SECONDS")
    ai_max_retries: int = Field(default=1, ge=0, le=1, alias="AI_MAX_RETRIES")
    ai_retry_backoff_seconds: float = Field(default=0.1, ge=0, le=0.5, alias="AI_RETRY_BACKOFF_SECONDS")
    ai_max_tokens: int = Field(default=200, gt=0, alias="AI_MAX_TOKENS")

    # Dictionary cache
    dictionary_memo_enabled: bool = Field(default=True, alias="DICTIONARY_MEMO_ENABLED")

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @validator("environment")
    def validate_environment(cls, v):
        """Validate environment"""
        valid_envs = ["development", "staging", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of {valid_envs}")
        return v.lower()

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
