from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    VIRUSTOTAL_API_KEY: str = ""
    VIRUSTOTAL_BASE_URL: str = "https://www.virustotal.com/vtapi/v2"
    CORS_ORIGINS: List[str] = ["*"]
    USER_AGENT: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/110.0.0.0 Safari/537.36"
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"

    REQUEST_TIMEOUT: float = 5.0
    CACHE_TTL_SECONDS: int = 24 * 60 * 60
    POLL_ATTEMPTS: int = 5
    POLL_INTERVAL: float = 1.0
    MAX_REDIRECT_HOPS: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
    )

# Load settings from environment
settings = Settings()
