"""Rolegate: client-side role policy aggregation and permission checks."""

from .context import ContextSnapshot, ContextState, EvaluationContext, PrincipalContext
from .exceptions import FetchFailure, RolegateError
from .policy import (
    Action,
    AggregationResult,
    ParseFailure,
    PolicyDocument,
    RoleRecord,
    allowed,
    allowed_all,
    allowed_any,
    allowed_endpoint,
    combine,
    combine_records,
    parse_policy,
)
from .sources import get_role_source

__version__ = "0.1.0"
__all__ = [
    "Action",
    "AggregationResult",
    "ContextSnapshot",
    "ContextState",
    "EvaluationContext",
    "FetchFailure",
    "ParseFailure",
    "PolicyDocument",
    "PrincipalContext",
    "RoleRecord",
    "RolegateError",
    "allowed",
    "allowed_all",
    "allowed_any",
    "allowed_endpoint",
    "combine",
    "combine_records",
    "get_role_source",
    "parse_policy",
]
