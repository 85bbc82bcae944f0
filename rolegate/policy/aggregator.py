"""Union-reduction of role policies into one effective policy."""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DATA_ACTIONS, FEATURE_ACTIONS
from .document import (
    DataPermissions,
    FeaturePermissions,
    ParseFailure,
    PolicyDocument,
    RoleRecord,
    parse_policy,
)

logger = logging.getLogger(__name__)


class AggregationResult(BaseModel):
    """Effective policy together with the records that failed to parse."""

    model_config = ConfigDict(frozen=True)

    policy: PolicyDocument = Field(default_factory=PolicyDocument.empty)
    failures: Tuple[ParseFailure, ...] = ()


def combine(documents: Iterable[PolicyDocument]) -> PolicyDocument:
    """Return the per-action set union of ``documents``.

    The wildcard is carried through like any other resource identifier; an
    empty input produces a document that grants nothing.
    """
    collected = {action: set() for action in DATA_ACTIONS + FEATURE_ACTIONS}
    for document in documents:
        for action, resources in document.grants().items():
            collected[action].update(resources)

    return PolicyDocument(
        data=DataPermissions(**{a: frozenset(collected[a]) for a in DATA_ACTIONS}),
        features=FeaturePermissions(
            **{a: frozenset(collected[a]) for a in FEATURE_ACTIONS}
        ),
    )


def combine_records(records: Iterable[RoleRecord]) -> AggregationResult:
    """Parse each record's policy and combine the results.

    A record whose policy does not parse contributes no permissions; its
    :class:`ParseFailure` is logged and returned in the result.
    """
    documents: List[PolicyDocument] = []
    failures: List[ParseFailure] = []

    for record in records:
        parsed = parse_policy(record.policy, role_id=record.role_id)
        if isinstance(parsed, ParseFailure):
            logger.warning(
                f"Failed to parse policy for role {record.role_id}: {parsed.reason}"
            )
            failures.append(parsed)
            continue
        documents.append(parsed)

    return AggregationResult(policy=combine(documents), failures=tuple(failures))
