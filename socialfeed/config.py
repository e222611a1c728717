"""Application configuration loaded from config.yaml and environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_YAML_PATH = PROJECT_ROOT / "config.yaml"


# --- YAML sub-models ---


class PostConfig(BaseModel):
    """Sample post seeded into the feed."""

    title: str
    author: str
    description: str = ""


class LikesConfig(BaseModel):
    """Live like counter timing."""

    poll_interval_seconds: float = 2.0
    stream_interval_seconds: float = 2.0


# --- Main settings ---


class Settings(BaseSettings):
    """Application settings combining .env secrets and config.yaml values."""

    # App config
    env: str = Field(default="dev")
    cors_origins: str = Field(default="http://localhost:3000")

    # Session
    jwt_secret: str = Field(default="")
    session_cookie_name: str = Field(default="social_token")
    session_ttl_seconds: int = Field(default=3600)

    # Secrets from .env
    supabase_url: str = Field(default="")
    supabase_secret_key: str = Field(default="")
    supabase_service_role_key: str = Field(default="")

    # YAML-sourced config
    posts: list[PostConfig] = Field(default_factory=list)
    likes: LikesConfig = Field(default_factory=LikesConfig)

    model_config = {
        "env_file": str(PROJECT_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def __init__(self, **kwargs: Any) -> None:
        yaml_data = _load_yaml_config()
        merged = {**yaml_data, **kwargs}
        super().__init__(**merged)

    @property
    def effective_supabase_secret_key(self) -> str:
        """Prefer the new-style secret key, fall back to the legacy service role key."""
        return self.supabase_secret_key or self.supabase_service_role_key

    @property
    def is_production(self) -> bool:
        return self.env == "prod"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def _load_yaml_config() -> dict[str, Any]:
    """Read and parse config.yaml, returning an empty dict on failure."""
    if not CONFIG_YAML_PATH.exists():
        return {}
    with CONFIG_YAML_PATH.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
