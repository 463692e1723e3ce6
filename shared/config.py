"""
Shared configuration management for the rules engine.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RULES_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class EngineConfig(BaseConfig):
    """Rule engine configuration."""

    # Engine-wide iteration cap; None means "number of rules in the rule set"
    max_iterations: Optional[int] = Field(default=None, gt=0)

    # Extra YAML catalogs loaded on top of the built-in ones
    catalog_dir: Optional[str] = Field(default=None)
    load_builtin_catalogs: bool = Field(default=True)


def get_config(**overrides) -> EngineConfig:
    """Get rule engine configuration."""
    return EngineConfig(**overrides)
