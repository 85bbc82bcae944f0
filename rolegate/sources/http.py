"""Role source backed by the roles & permissions HTTP API."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..constants import DEFAULT_API_URL, ORG_HEADER, USER_HEADER
from ..exceptions import FetchFailure
from ..policy.document import RoleRecord
from ..utils.retry import schedule_retry
from .base import BaseRoleSource

logger = logging.getLogger(__name__)


class HttpRoleSource(BaseRoleSource):
    """Fetch role assignments with ``GET /user/{principal}/roles``.

    Network errors and 5xx responses are retried ``retry_attempts`` times with
    exponential backoff; other failures raise :class:`FetchFailure` at once.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 5.0,
        retry_attempts: int = 2,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self._client = client
        self._owns_client = client is None

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
            self._owns_client = True

    async def disconnect(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch_role_records(
        self, principal_id: str, organization_id: str
    ) -> List[RoleRecord]:
        await self.connect()
        url = f"{self.base_url}/user/{principal_id}/roles"
        params = {"organization_uuid": organization_id}
        headers = {USER_HEADER: principal_id, ORG_HEADER: organization_id}

        attempt = 0
        while True:
            try:
                response = await self._client.get(url, params=params, headers=headers)
            except httpx.HTTPError as e:
                if attempt < self.retry_attempts:
                    logger.debug(f"Role fetch attempt {attempt + 1} failed: {e}")
                    await schedule_retry(attempt)
                    attempt += 1
                    continue
                raise FetchFailure(
                    f"Role source unreachable: {e}",
                    principal_id=principal_id,
                    organization_id=organization_id,
                ) from e

            if response.status_code >= 500 and attempt < self.retry_attempts:
                logger.debug(
                    f"Role fetch attempt {attempt + 1} got HTTP {response.status_code}"
                )
                await schedule_retry(attempt)
                attempt += 1
                continue
            break

        if response.is_error:
            raise FetchFailure(
                f"Role source returned HTTP {response.status_code}",
                principal_id=principal_id,
                organization_id=organization_id,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise FetchFailure(f"Role source returned invalid JSON: {e}") from e
        if not isinstance(body, list):
            raise FetchFailure("Role source response is not a list of roles")

        try:
            return [RoleRecord.model_validate(item) for item in body]
        except ValidationError as e:
            raise FetchFailure(f"Role source returned malformed role: {e}") from e
