"""Policy documents, aggregation and evaluation."""

from __future__ import annotations

from .aggregator import AggregationResult, combine, combine_records
from .document import (
    DataPermissions,
    FeaturePermissions,
    ParseFailure,
    PolicyDocument,
    RoleRecord,
    parse_policy,
)
from .endpoints import ENDPOINT_RULES, EndpointRule, allowed_endpoint, resolve_endpoint
from .evaluator import Action, allowed, allowed_all, allowed_any, category_for

__all__ = [
    "Action",
    "AggregationResult",
    "DataPermissions",
    "ENDPOINT_RULES",
    "EndpointRule",
    "FeaturePermissions",
    "ParseFailure",
    "PolicyDocument",
    "RoleRecord",
    "allowed",
    "allowed_all",
    "allowed_any",
    "allowed_endpoint",
    "category_for",
    "combine",
    "combine_records",
    "parse_policy",
    "resolve_endpoint",
]
