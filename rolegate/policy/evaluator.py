"""Wildcard-aware permission checks against a policy document."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Union

from ..constants import DATA_ACTIONS, FEATURE_ACTIONS, WILDCARD
from .document import PolicyDocument


class Action(str, Enum):
    """Actions understood by the evaluator."""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    EXECUTE = "execute"


ActionLike = Union[Action, str]


def _action_name(action: ActionLike) -> str:
    return action.value if isinstance(action, Action) else action


def category_for(action: ActionLike) -> Optional[str]:
    """Return ``"data"`` or ``"features"`` for ``action``, else ``None``."""
    name = _action_name(action)
    if name in DATA_ACTIONS:
        return "data"
    if name in FEATURE_ACTIONS:
        return "features"
    return None


def allowed(
    policy: Optional[PolicyDocument], action: ActionLike, resource: str
) -> bool:
    """Return ``True`` if ``policy`` grants ``action`` on ``resource``.

    A missing policy and an unrecognized action both deny.
    """
    if policy is None:
        return False
    resources = policy.resources(_action_name(action))
    if resources is None:
        return False
    return resource in resources or WILDCARD in resources


def allowed_any(
    policy: Optional[PolicyDocument], action: ActionLike, resources: Iterable[str]
) -> bool:
    """Return ``True`` if at least one of ``resources`` is allowed.

    An empty ``resources`` is ``False``.
    """
    return any(allowed(policy, action, resource) for resource in resources)


def allowed_all(
    policy: Optional[PolicyDocument], action: ActionLike, resources: Iterable[str]
) -> bool:
    """Return ``True`` if every one of ``resources`` is allowed.

    An empty ``resources`` is ``True``.
    """
    return all(allowed(policy, action, resource) for resource in resources)
