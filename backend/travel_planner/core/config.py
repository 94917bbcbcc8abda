"""
Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration management with validation,
loading settings from environment variables and .env files.

Vendor credentials (speech, LLM, map) are optional at start-up. Each vendor
client validates its own configuration lazily so the API can still serve
plans and budgets when a vendor is not configured.
"""

import json
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Secrets should never be committed to code - use .env file (gitignored).
    """

    # API Configuration
    api_prefix: str = Field(
        default="/api",
        description="Prefix for all resource routers"
    )
    project_name: str = Field(
        default="AI Travel Planner API",
        description="Project name displayed in API docs"
    )
    environment: str = Field(
        default="development",
        description="Deployment environment; 'development' exposes error details"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/travel_planner.db",
        description="Database connection URL (SQLite for development, PostgreSQL in production)"
    )

    # Security Configuration
    secret_key: str = Field(
        ...,
        description="Secret key for JWT token signing (generate with: openssl rand -hex 32)"
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        description="JWT access token expiration time in minutes (default: 7 days)"
    )

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (frontend URLs)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow cookies/credentials in CORS requests"
    )

    # Rate limiting
    rate_limit_requests: int = Field(
        default=100,
        gt=0,
        description="Requests allowed per client IP per window"
    )
    rate_limit_window_seconds: int = Field(
        default=15 * 60,
        gt=0,
        description="Rate limit window length in seconds"
    )
    disable_rate_limit: bool = Field(
        default=False,
        description="Disable the rate limiting middleware (tests, local tooling)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    # iFlytek speech recognition / synthesis
    iflytek_app_id: str = Field(default="", description="iFlytek application ID")
    iflytek_api_key: str = Field(default="", description="iFlytek API key")
    iflytek_api_secret: str = Field(default="", description="iFlytek API secret")
    voice_recognition_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a final transcript before returning partial text"
    )

    # LLM configuration
    llm_provider: str = Field(
        default="bailian",
        description="LLM backend: 'bailian' (signed REST API) or 'openai' (OpenAI-compatible)"
    )
    llm_model: str = Field(default="qwen-plus", description="Model used for itinerary planning")
    aliyun_bailian_access_key_id: str = Field(default="", description="Bailian access key ID")
    aliyun_bailian_access_key_secret: str = Field(default="", description="Bailian access key secret")
    aliyun_bailian_endpoint: str = Field(
        default="bailian.cn-beijing.aliyuncs.com",
        description="Bailian API host"
    )
    llm_api_key: str = Field(default="", description="API key for the OpenAI-compatible provider")
    llm_base_url: str = Field(
        default="https://dashscope.aliyuncs.com/compatible-mode/v1",
        description="Base URL for the OpenAI-compatible provider"
    )

    # Amap (map, POI, routing, weather)
    amap_api_key: str = Field(default="", description="Amap web service key")
    amap_base_url: str = Field(
        default="https://restapi.amap.com/v3",
        description="Amap REST API base URL"
    )

    vendor_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="HTTP timeout for vendor API calls"
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """
        Parse cors_origins from JSON string or list.

        Supports comma-separated origins for easier .env configuration.
        """
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # Fallback: split by comma if not valid JSON
                return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """
        Validate that secret_key is properly configured.

        Raises ValueError if still using placeholder value or too short.
        """
        if not v or v.strip() == "":
            raise ValueError(
                "SECRET_KEY is required and cannot be empty. "
                "Generate one with: openssl rand -hex 32"
            )
        if v in ["generate-with-openssl-rand-hex-32", "CHANGE_ME_32_CHARS_MIN", "your-secret-key-here"]:
            raise ValueError(
                "SECRET_KEY must be set to a secure random value (not placeholder). "
                "Generate one with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError(
                f"SECRET_KEY must be at least 32 characters long for security. "
                f"Current length: {len(v)}. Generate with: openssl rand -hex 32"
            )
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure the database URL uses a supported async driver scheme."""
        if not v or v.strip() == "":
            raise ValueError("DATABASE_URL is required and cannot be empty")

        valid_schemes = ["sqlite+aiosqlite", "postgresql+asyncpg"]
        if not any(v.startswith(scheme + ":") for scheme in valid_schemes):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        provider = v.strip().lower()
        if provider not in {"bailian", "openai"}:
            raise ValueError("LLM_PROVIDER must be 'bailian' or 'openai'")
        return provider

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


# Global settings instance
# Import this instance throughout the application
settings = Settings()
