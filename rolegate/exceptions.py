"""Exception types raised by rolegate."""

from __future__ import annotations

from typing import Optional


class RolegateError(Exception):
    """Base class for rolegate errors."""


class FetchFailure(RolegateError):
    """A role source could not return role records."""

    def __init__(
        self,
        message: str,
        principal_id: Optional[str] = None,
        organization_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.principal_id = principal_id
        self.organization_id = organization_id
        self.status_code = status_code
