"""Base role source interface for rolegate."""

from __future__ import annotations

import abc
from typing import List

from ..policy.document import RoleRecord


class BaseRoleSource(metaclass=abc.ABCMeta):
    """Abstract source of role assignments for a principal."""

    async def connect(self) -> None:
        """Open underlying resources (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Release underlying resources (no-op by default)."""
        pass

    @abc.abstractmethod
    async def fetch_role_records(
        self, principal_id: str, organization_id: str
    ) -> List[RoleRecord]:
        """Return every role held by ``principal_id`` in ``organization_id``.

        Raises:
            FetchFailure: If the records could not be retrieved.
        """
        raise NotImplementedError
