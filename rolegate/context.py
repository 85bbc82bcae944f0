"""Principal context: owns the effective policy for one principal/organization."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .exceptions import FetchFailure
from .policy.aggregator import combine_records
from .policy.document import ParseFailure, PolicyDocument, RoleRecord
from .policy.endpoints import allowed_endpoint
from .policy.evaluator import ActionLike, allowed, allowed_all, allowed_any
from .sources.base import BaseRoleSource

logger = logging.getLogger(__name__)

ParseFailureHandler = Callable[[ParseFailure], None]


class ContextState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class EvaluationContext(BaseModel):
    """The principal and organization whose roles are evaluated."""

    model_config = ConfigDict(frozen=True)

    principal_id: str
    organization_id: str


class ContextSnapshot(BaseModel):
    """Immutable view of a :class:`PrincipalContext` at one point in time."""

    model_config = ConfigDict(frozen=True)

    state: ContextState = ContextState.IDLE
    context: Optional[EvaluationContext] = None
    policy: Optional[PolicyDocument] = None
    roles: Tuple[RoleRecord, ...] = ()
    failures: Tuple[ParseFailure, ...] = ()
    error: Optional[str] = None
    sequence: int = 0


class PrincipalContext:
    """Loads, caches and evaluates the effective policy of one principal.

    The context is the only writer of its policy. Every change publishes a new
    :class:`ContextSnapshot` through a single attribute assignment, so readers
    always see either the previous or the next complete state.

    Each fetch is numbered when issued. A result is applied only if it belongs
    to the current evaluation context and is newer than the last applied
    result; anything else is discarded. Fetch errors never escape: they move
    the context to ``FAILED`` while the previously loaded policy keeps
    answering checks.
    """

    def __init__(
        self,
        source: BaseRoleSource,
        on_parse_failure: Optional[ParseFailureHandler] = None,
    ) -> None:
        self._source = source
        self._on_parse_failure = on_parse_failure
        self._snapshot = ContextSnapshot()
        self._issued = 0
        self._applied = 0

    # ------------------------------------------------------------------
    # Read side
    @property
    def snapshot(self) -> ContextSnapshot:
        return self._snapshot

    @property
    def state(self) -> ContextState:
        return self._snapshot.state

    @property
    def context(self) -> Optional[EvaluationContext]:
        return self._snapshot.context

    @property
    def policy(self) -> Optional[PolicyDocument]:
        return self._snapshot.policy

    @property
    def roles(self) -> Tuple[RoleRecord, ...]:
        return self._snapshot.roles

    @property
    def failures(self) -> Tuple[ParseFailure, ...]:
        return self._snapshot.failures

    @property
    def error(self) -> Optional[str]:
        return self._snapshot.error

    @property
    def loading(self) -> bool:
        return self._snapshot.state is ContextState.LOADING

    def allowed(self, action: ActionLike, resource: str) -> bool:
        return allowed(self._snapshot.policy, action, resource)

    def allowed_any(self, action: ActionLike, resources: Iterable[str]) -> bool:
        return allowed_any(self._snapshot.policy, action, resources)

    def allowed_all(self, action: ActionLike, resources: Iterable[str]) -> bool:
        return allowed_all(self._snapshot.policy, action, resources)

    def allowed_endpoint(self, endpoint: str) -> bool:
        return allowed_endpoint(self._snapshot.policy, endpoint)

    # ------------------------------------------------------------------
    # Lifecycle
    async def set_context(
        self, principal_id: Optional[Any], organization_id: Optional[Any]
    ) -> None:
        """Switch to ``(principal_id, organization_id)`` and load its roles.

        Does nothing unless both identifiers are given. Non-string
        identifiers such as ``uuid.UUID`` are compared by their string form.
        """
        if not principal_id or not organization_id:
            logger.debug("Ignoring set_context without principal and organization")
            return

        context = EvaluationContext(
            principal_id=str(principal_id), organization_id=str(organization_id)
        )
        if context != self._snapshot.context:
            # policy state is never carried across contexts
            self._snapshot = ContextSnapshot(
                state=self._snapshot.state,
                context=context,
                sequence=self._snapshot.sequence,
            )
        await self._load(context)

    async def refresh(self) -> None:
        """Reload roles for the current context; no-op if none is set."""
        context = self._snapshot.context
        if context is None:
            logger.debug("Ignoring refresh without an evaluation context")
            return
        await self._load(context)

    def invalidate(self) -> None:
        """Forget the context and its policy; in-flight fetches are discarded."""
        self._applied = self._issued
        self._snapshot = ContextSnapshot(sequence=self._applied)

    # ------------------------------------------------------------------
    async def _load(self, context: EvaluationContext) -> None:
        self._issued += 1
        sequence = self._issued
        self._snapshot = self._snapshot.model_copy(
            update={"state": ContextState.LOADING}
        )

        try:
            fetched = await self._source.fetch_role_records(
                context.principal_id, context.organization_id
            )
            records = [
                r if isinstance(r, RoleRecord) else RoleRecord.model_validate(r)
                for r in fetched
            ]
        except Exception as e:
            self._apply_failure(context, sequence, e)
            return

        self._apply_records(context, sequence, records)

    def _is_stale(self, context: EvaluationContext, sequence: int) -> bool:
        if context != self._snapshot.context or sequence <= self._applied:
            logger.debug(
                f"Discarding stale role fetch #{sequence} for {context.principal_id}"
            )
            return True
        return False

    def _apply_records(
        self,
        context: EvaluationContext,
        sequence: int,
        records: Iterable[RoleRecord],
    ) -> None:
        if self._is_stale(context, sequence):
            return

        roles = tuple(records)
        result = combine_records(roles)
        self._applied = sequence
        state = ContextState.LOADED if sequence == self._issued else ContextState.LOADING
        self._snapshot = ContextSnapshot(
            state=state,
            context=context,
            policy=result.policy,
            roles=roles,
            failures=result.failures,
            sequence=sequence,
        )
        logger.info(
            f"Loaded {len(roles)} role(s) for {context.principal_id} "
            f"in {context.organization_id}"
        )
        self._report(result.failures)

    def _apply_failure(
        self, context: EvaluationContext, sequence: int, error: Exception
    ) -> None:
        if self._is_stale(context, sequence):
            return
        if sequence != self._issued:
            # a newer fetch is still pending and will settle the state
            logger.debug(f"Ignoring failed role fetch #{sequence}: {error}")
            return

        if not isinstance(error, FetchFailure):
            error = FetchFailure(
                str(error) or type(error).__name__,
                principal_id=context.principal_id,
                organization_id=context.organization_id,
            )
        logger.error(
            f"Failed to load roles for {context.principal_id} "
            f"in {context.organization_id}: {error}"
        )
        self._applied = sequence
        self._snapshot = self._snapshot.model_copy(
            update={
                "state": ContextState.FAILED,
                "error": str(error),
                "sequence": sequence,
            }
        )

    def _report(self, failures: Tuple[ParseFailure, ...]) -> None:
        if self._on_parse_failure is None:
            return
        for failure in failures:
            try:
                self._on_parse_failure(failure)
            except Exception:
                logger.exception(
                    f"Parse failure handler raised for role {failure.role_id}"
                )
