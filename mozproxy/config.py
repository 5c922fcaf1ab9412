"""
Configuration management for the Moz API proxy
Environment-based settings with safe defaults
"""

from functools import lru_cache
from typing import Dict

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "moz-api-proxy"
    APP_ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    WORKERS: int = 4

    # CORS (single known browser origin)
    CORS_ALLOWED_ORIGIN: str = "https://jbmoz-api-tool-ui.vercel.app"
    CORS_ALLOWED_METHODS: str = "POST, OPTIONS"
    CORS_ALLOWED_HEADERS: str = "Content-Type"

    # Moz JSON-RPC upstream
    MOZ_API_ENDPOINT: str = "https://api.moz.com/jsonrpc"
    MOZ_TOKEN_HEADER: str = "x-moz-token"
    MOZ_REQUEST_TIMEOUT: float = 30.0  # seconds

    # Batch execution
    MAX_CONCURRENT_CALLS: int = 10
    MALFORMED_BODY_LOG_CHARS: int = 500

    # LLM provider (server-side key, callers never send one)
    OPENAI_API_KEY: str = ""
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_DEFAULT_MODEL: str = "gpt-4o-mini"
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-small"
    LLM_DEFAULT_TEMPERATURE: float = 0.7
    LLM_DEFAULT_MAX_TOKENS: int = 2000
    LLM_REQUEST_TIMEOUT: int = 60  # seconds
    EMBEDDING_MAX_TOKENS: int = 8191

    @field_validator("MAX_CONCURRENT_CALLS")
    @classmethod
    def positive_concurrency(cls, v: int) -> int:
        return max(1, v)

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return str(v).upper()

    @property
    def cors_headers(self) -> Dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.CORS_ALLOWED_ORIGIN,
            "Access-Control-Allow-Methods": self.CORS_ALLOWED_METHODS,
            "Access-Control-Allow-Headers": self.CORS_ALLOWED_HEADERS,
        }

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader"""
    return Settings()
