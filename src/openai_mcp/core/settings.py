from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_MIN_REQUEST_INTERVAL_MS: int = 100
    OPENAI_MAX_RETRIES: int = 3
    OPENAI_REQUEST_TIMEOUT_S: float = 60.0
    LOG_LEVEL: str = "INFO"
    TOOLING_CONFIG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
