from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import DEFAULT_API_URL, DEFAULT_CONFIG_FILE


class HttpSourceConfig(BaseModel):
    """Configuration for the HTTP role source."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 5.0
    retry_attempts: int = 2


class RoleSourceConfig(BaseModel):
    """Role source configuration settings."""

    backend: Literal["inmemory", "http"] = "inmemory"
    http: HttpSourceConfig = Field(default_factory=HttpSourceConfig)


class RolegateConfig(BaseModel):
    """Top-level configuration model."""

    role_source: RoleSourceConfig = Field(default_factory=RoleSourceConfig)
    log_level: str = "WARNING"


def load_config(path: Optional[str] = None) -> RolegateConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to ROLEGATE_CONFIG env
            variable or 'rolegate.yaml' in the current directory.
    """

    config_path = path or os.getenv("ROLEGATE_CONFIG", DEFAULT_CONFIG_FILE)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = RolegateConfig(**data)
    else:
        config = RolegateConfig()

    env_api_url = os.getenv("ROLEGATE_API_URL")
    if env_api_url:
        config.role_source.http.base_url = env_api_url
    return config
