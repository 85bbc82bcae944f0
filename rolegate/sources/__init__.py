"""Role source factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import RolegateConfig, load_config
from .base import BaseRoleSource
from .inmemory import InMemoryRoleSource, load_records


def get_role_source(
    backend: Optional[str] = None, config: Optional[RolegateConfig] = None
) -> BaseRoleSource:
    """Factory function to get the configured role source."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("ROLEGATE_ROLE_SOURCE")
        or config.role_source.backend
    ).lower()

    if backend == "inmemory":
        return InMemoryRoleSource()
    elif backend == "http":
        from .http import HttpRoleSource

        http_conf = config.role_source.http
        return HttpRoleSource(
            base_url=http_conf.base_url,
            timeout=http_conf.timeout,
            retry_attempts=http_conf.retry_attempts,
        )
    else:
        raise ValueError(f"Unsupported role source backend: {backend}")


__all__ = ["BaseRoleSource", "InMemoryRoleSource", "get_role_source", "load_records"]
