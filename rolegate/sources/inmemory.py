"""In-memory role source for testing."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..exceptions import FetchFailure
from ..policy.document import RoleRecord
from .base import BaseRoleSource

RoleLike = Union[RoleRecord, Mapping[str, Any]]


class InMemoryRoleSource(BaseRoleSource):
    """Keep role assignments in local memory.

    Useful for tests or offline evaluation. ``fail_with`` makes every fetch
    raise the given error, and ``delay`` suspends each fetch to let callers
    exercise overlapping requests.
    """

    def __init__(
        self,
        assignments: Optional[Mapping[Tuple[str, str], List[RoleLike]]] = None,
        delay: float = 0.0,
    ) -> None:
        self._assignments: Dict[Tuple[str, str], Dict[str, RoleRecord]] = defaultdict(dict)
        self.delay = delay
        self.fail_with: Optional[Exception] = None
        self.calls = 0
        for (principal_id, organization_id), roles in (assignments or {}).items():
            for role in roles:
                self.assign(principal_id, organization_id, role)

    def assign(self, principal_id: str, organization_id: str, role: RoleLike) -> RoleRecord:
        """Grant ``role`` to the principal; re-assigning replaces by role id."""
        record = role if isinstance(role, RoleRecord) else RoleRecord.model_validate(role)
        self._assignments[(principal_id, organization_id)][record.role_id] = record
        return record

    def revoke(self, principal_id: str, organization_id: str, role_id: str) -> bool:
        """Remove a role assignment; returns ``False`` if it did not exist."""
        roles = self._assignments.get((principal_id, organization_id))
        if not roles or role_id not in roles:
            return False
        del roles[role_id]
        return True

    async def fetch_role_records(
        self, principal_id: str, organization_id: str
    ) -> List[RoleRecord]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        roles = self._assignments.get((principal_id, organization_id), {})
        return list(roles.values())


def load_records(
    payload: Any, principal_id: str, organization_id: str
) -> InMemoryRoleSource:
    """Build a source from decoded JSON records.

    ``payload`` is either a list of roles, assigned to the given principal, or
    an object keyed by ``"<principal>/<organization>"``.
    """
    if isinstance(payload, list):
        return InMemoryRoleSource({(principal_id, organization_id): payload})
    if not isinstance(payload, Mapping):
        raise FetchFailure("records must be a JSON array or object")

    assignments: Dict[Tuple[str, str], List[RoleLike]] = {}
    for key, roles in payload.items():
        principal, _, organization = key.partition("/")
        if not organization or not isinstance(roles, list):
            raise FetchFailure(f"invalid records entry: {key!r}")
        assignments[(principal, organization)] = roles
    return InMemoryRoleSource(assignments)
