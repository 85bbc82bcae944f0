"""Map API gateway endpoints onto action/resource permission checks."""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .document import PolicyDocument
from .evaluator import allowed


class EndpointRule(BaseModel):
    """Endpoint prefixes that require ``action`` on ``resource``."""

    model_config = ConfigDict(frozen=True)

    prefixes: Tuple[str, ...]
    action: str
    resource: str

    def matches(self, endpoint: str) -> bool:
        return endpoint.startswith(self.prefixes)


def _rules(
    collection: str,
    item: str,
    resource: str,
    create: Optional[str] = None,
    delete: Optional[str] = None,
) -> Tuple[EndpointRule, ...]:
    rules = [EndpointRule(prefixes=(f"GET {collection}",), action="view", resource=resource)]
    if create:
        rules.append(
            EndpointRule(prefixes=(f"POST {collection}",), action="execute", resource=create)
        )
    rules.append(
        EndpointRule(
            prefixes=(f"PUT {item}", f"PATCH {item}"), action="edit", resource=resource
        )
    )
    if delete:
        rules.append(
            EndpointRule(prefixes=(f"DELETE {item}",), action="execute", resource=delete)
        )
    return tuple(rules)


# Order matters: the first matching rule wins.
ENDPOINT_RULES: Tuple[EndpointRule, ...] = (
    *_rules("/users", "/users/", "user_basic_info", "create_user", "delete_user"),
    *_rules("/tasks", "/tasks/", "task", "create_task", "delete_task"),
    *_rules("/organization", "/organization", "organization"),
    *_rules("/clients", "/clients/", "client", "create_client", "delete_client"),
    *_rules("/comment", "/comment/", "comment", "create_comment", "delete_comment"),
)


def resolve_endpoint(endpoint: str) -> Optional[EndpointRule]:
    """Return the rule for ``"<METHOD> <path>"`` or ``None`` if unmapped."""
    endpoint = endpoint.strip()
    return next((rule for rule in ENDPOINT_RULES if rule.matches(endpoint)), None)


def allowed_endpoint(policy: Optional[PolicyDocument], endpoint: str) -> bool:
    """Check an endpoint against ``policy``; unmapped endpoints deny."""
    rule = resolve_endpoint(endpoint)
    if rule is None:
        return False
    return allowed(policy, rule.action, rule.resource)
