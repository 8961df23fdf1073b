"""
cambright.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, LLM API key).
- Offer a cached settings instance for the process entrypoint.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `CAMBRIGHT_`).

    The app factory stores the instance it was built with on `app.state.settings`;
    request dependencies read it from there so tests can inject their own.
    """

    model_config = SettingsConfigDict(env_prefix="CAMBRIGHT_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "cambright-api"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth (tokens are minted by the identity provider; HS256 shared secret here)
    jwt_alg: str = "HS256"
    jwt_issuer: str = "cambright-identity"
    jwt_audience: str = "cambright-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    # Clock skew tolerated on exp/iat when validating provider tokens.
    jwt_leeway_seconds: int = Field(default=0, ge=0)
    dev_token_ttl_minutes: int = Field(default=60, ge=1)
    admin_user_ids: list[str] = Field(default_factory=list)

    # Every authenticated user may author notes when enabled.
    open_tutoring: bool = False

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./cambright.db"

    # AI chat (OpenRouter-compatible chat completions API)
    openrouter_api_key: str | None = Field(default=None, repr=False)
    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    chat_default_model: str = "google/gemma-3-4b-it:free"
    chat_default_temperature: float = 0.7
    chat_max_tokens: int = 4096
    chat_timeout_seconds: float = 60.0
    chat_referer: str = "https://cambright.org"
    chat_title: str = "Cambright Tuto AI"

    # Assets
    asset_storage_dir: str = "./var/assets"
    asset_max_bytes: int = 10 * 1024 * 1024
    asset_public_base_url: str = "/api/assets"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars when the entrypoint asks more than once.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Secrets default to dev-safe values; prod deployments must override them via env.
