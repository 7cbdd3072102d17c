"""Engine configuration settings."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (MOTIONLAB_ prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="MOTIONLAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "motionlab"
    debug: bool = False

    # Directory holding <table>.json content files (used by JsonDirectoryProvider)
    content_dir: Path = Path("content/tables")

    # Inheritance walk bound for delta resolution
    max_inherit_depth: int = 20

    # Score policy preset used when a caller supplies no overrides
    default_policy: str = "default"
    policy_config_path: Path | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
