"""
Parrotchain Service Configuration
"""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ===== Service =====
    SERVICE_NAME: str = Field(default="parrotchain")
    SERVICE_VERSION: str = Field(default="0.3.0")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    LOG_LEVEL: str = Field(default="info")
    DEBUG: bool = Field(default=False)

    # ===== CORS =====
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"]
    )

    # ===== Storage =====
    # "memory://" keeps the chain in process memory only
    DATABASE_URL: str = Field(default="sqlite:///./parrotchain.db")

    # ===== Chain =====
    MARKOV_TYPE: Literal["single", "double", "hybrid"] = Field(default="hybrid")
    HYBRID_THRESHOLD: int = Field(default=10, ge=0)
    MARKOV_CHANCE: int = Field(default=10, ge=0)
    REPLY_MODE: Literal["off", "random", "reply", "reply_unique"] = Field(default="reply")
    MAX_WALK_STEPS: int = Field(default=1000, ge=1)

    # ===== Ingestion =====
    CORPUS_PATH: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
