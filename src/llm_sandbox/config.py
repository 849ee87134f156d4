"""
Configuration management using Pydantic Settings.

This module handles all environment-based configuration for the LLM Sandbox application,
including API settings, provider credentials, and storage locations.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = "You are a senior software engineer. Be concise and practical."


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file.

    Provider credentials are optional at startup. A missing key only fails the
    requests that need it, so one provider can be used without the other.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API server host address")
    api_port: int = Field(default=8000, description="API server port")
    api_title: str = Field(default="LLM Sandbox", description="API title")
    api_version: str = Field(default="0.2.0", description="API version")

    # Environment
    environment: str = Field(
        default="development",
        description="Deployment environment",
        pattern="^(development|staging|production|test)$",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="json",
        description="Logging format",
        pattern="^(json|standard)$",
    )

    # Kimi (Moonshot) Configuration
    moonshot_api_key: str | None = Field(
        default=None,
        description="Moonshot API key for Kimi models",
    )
    moonshot_base: str = Field(
        default="https://api.moonshot.ai/v1",
        description="Base URL of the Moonshot chat completions API",
    )

    # OpenAI Configuration
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_base: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI chat completions API",
    )

    # Completion defaults
    default_system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System prompt synthesized when a request does not supply one",
    )
    default_max_tokens: int = Field(
        default=5000,
        description="Maximum completion tokens when a request does not specify them",
        ge=1,
    )

    # Storage
    log_file: Path = Field(
        default=Path("logs") / "responses.jsonl",
        description="Append-only JSONL file receiving one record per completion",
    )
    prompts_dir: Path = Field(
        default=Path("prompts"),
        description="Directory holding prompt templates (*.md)",
    )
    usage_history_size: int = Field(
        default=1000,
        description="Number of usage entries kept in memory for /api/usage",
        ge=1,
        le=100000,
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],  # Allow all origins for development
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=False,  # Must be False when using wildcard
        description="Allow CORS credentials",
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        description="Allowed CORS methods",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "X-Request-ID"],
        description="Allowed CORS headers",
    )

    # Request Validation
    max_request_body_size: int = Field(
        default=1048576,  # 1 MB in bytes
        description="Maximum request body size in bytes",
        ge=1024,  # Minimum 1 KB
        le=10485760,  # Maximum 10 MB
    )

    # Security Headers Configuration
    enable_security_headers: bool = Field(
        default=True,
        description="Enable security headers (X-Content-Type-Options, X-Frame-Options, HSTS, X-XSS-Protection)",
    )
