"""
Configuration management for Codr.

Provides centralized, type-safe configuration with environment variable overrides
and sensible defaults for the generation pipeline and its collaborators.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr

# Load .env file if it exists (looks in cwd and parent directories)
load_dotenv()


def _secret(name: str) -> SecretStr | None:
    value = os.environ.get(name, "")
    return SecretStr(value) if value else None


class LLMConfig(BaseModel):
    """LLM gateway configuration."""

    ai_gateway: str | None = Field(
        default=None,
        description="Base URL of an AI gateway fronting openai/anthropic/google",
    )
    ui_model: str = Field(default="gemini-2.0-pro-exp", description="Model for UI code generation")
    system_prompt: str = Field(
        default="You are a helpful, concise AI agent.",
        description="Default system prompt for general calls",
    )
    max_tokens: int = Field(default=1024, ge=256, description="Max output tokens")
    timeout_seconds: int = Field(default=120, ge=5, description="Request timeout")
    max_retries: int = Field(default=2, ge=1, description="Transport attempts per call")
    use_fallback: bool = Field(
        default=True, description="Retry a failed call once with the choice's fallback model"
    )


class StorageConfig(BaseModel):
    """Storage configuration for build artifacts and progress snapshots."""

    backend: Literal["local"] = Field(default="local", description="Storage backend")
    base_path: Path = Field(
        default=Path("./output"), description="Base path for local storage"
    )


class DeployConfig(BaseModel):
    """Preview deployment configuration."""

    preview_domain: str = Field(default="yourdomain.com", description="Preview host domain")

    def preview_url(self, session_id: str) -> str:
        """Derive the preview URL for a session."""
        return f"https://{session_id}.{self.preview_domain}"


class Config(BaseModel):
    """Root configuration for Codr."""

    project_name: str = Field(default="Codr", description="Project identifier")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    llm: LLMConfig = Field(default_factory=LLMConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)

    # Provider credentials (loaded from environment)
    openai_api_key: SecretStr | None = Field(default_factory=lambda: _secret("OPENAI_API_KEY"))
    anthropic_api_key: SecretStr | None = Field(default_factory=lambda: _secret("ANTHROPIC_API_KEY"))
    google_api_key: SecretStr | None = Field(default_factory=lambda: _secret("GOOGLE_API_KEY"))
    google_ai_studio_api_key: SecretStr | None = Field(
        default_factory=lambda: _secret("GOOGLE_AI_STUDIO_API_KEY")
    )
    openrouter_api_key: SecretStr | None = Field(default_factory=lambda: _secret("OPENROUTER_API_KEY"))
    replicate_api_token: SecretStr | None = Field(default_factory=lambda: _secret("REPLICATE_API_TOKEN"))

    model_config = {"extra": "ignore"}

    @classmethod
    def from_env(cls) -> Config:
        """Create configuration from environment variables."""
        return cls(
            log_level=os.environ.get("CODR_LOG_LEVEL", "INFO"),  # type: ignore
            llm=LLMConfig(
                ai_gateway=os.environ.get("CODR_AI_GATEWAY") or None,
                ui_model=os.environ.get("CODR_UI_MODEL", "gemini-2.0-pro-exp"),
                max_retries=int(os.environ.get("CODR_LLM_MAX_RETRIES", "2")),
                use_fallback=os.environ.get("CODR_LLM_USE_FALLBACK", "true").lower() == "true",
            ),
            storage=StorageConfig(
                base_path=Path(os.environ.get("CODR_OUTPUT_PATH", "./output")),
            ),
            deploy=DeployConfig(
                preview_domain=os.environ.get("CODR_PREVIEW_DOMAIN", "yourdomain.com"),
            ),
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()
