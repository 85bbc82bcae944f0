"""Shared constants for rolegate."""

from __future__ import annotations

WILDCARD = "*"

DATA_ACTIONS = ("view", "edit", "delete")
FEATURE_ACTIONS = ("execute",)

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_CONFIG_FILE = "rolegate.yaml"
USER_HEADER = "x-app-user-uuid"
ORG_HEADER = "x-app-org-uuid"
