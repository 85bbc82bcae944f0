"""Tests for endpoint to permission mapping."""

import pytest

from rolegate.policy import PolicyDocument, allowed_endpoint, resolve_endpoint


@pytest.mark.parametrize(
    "endpoint, action, resource",
    [
        ("GET /users", "view", "user_basic_info"),
        ("POST /users", "execute", "create_user"),
        ("PATCH /users/42", "edit", "user_basic_info"),
        ("DELETE /users/42", "execute", "delete_user"),
        ("GET /tasks/7", "view", "task"),
        ("POST /tasks", "execute", "create_task"),
        ("PUT /tasks/7", "edit", "task"),
        ("DELETE /tasks/7", "execute", "delete_task"),
        ("GET /organization", "view", "organization"),
        ("PATCH /organization", "edit", "organization"),
        ("POST /clients", "execute", "create_client"),
        ("DELETE /comment/3", "execute", "delete_comment"),
    ],
)
def test_resolve_endpoint(endpoint, action, resource):
    rule = resolve_endpoint(endpoint)
    assert rule is not None
    assert (rule.action, rule.resource) == (action, resource)


def test_unknown_endpoint():
    assert resolve_endpoint("GET /invoices") is None
    assert resolve_endpoint("DELETE /organization") is None


def test_allowed_endpoint():
    policy = PolicyDocument.from_grants({"view": ["task"], "execute": ["create_task"]})

    assert allowed_endpoint(policy, "GET /tasks")
    assert allowed_endpoint(policy, "POST /tasks")
    assert not allowed_endpoint(policy, "DELETE /tasks/1")
    assert not allowed_endpoint(policy, "GET /invoices")
    assert not allowed_endpoint(None, "GET /tasks")


def test_wildcard_policy_still_denies_unmapped_endpoints():
    policy = PolicyDocument.from_grants({"view": ["*"], "execute": ["*"]})
    assert allowed_endpoint(policy, "GET /clients")
    assert not allowed_endpoint(policy, "GET /metrics")
