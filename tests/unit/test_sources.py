"""Role source tests."""

import json

import httpx
import pytest

from rolegate import ContextState, PrincipalContext
from rolegate.config import RolegateConfig
from rolegate.exceptions import FetchFailure
from rolegate.sources import InMemoryRoleSource, get_role_source, load_records
from rolegate.sources.http import HttpRoleSource

ROLES = [
    {
        "role_uuid": "0b6e7d2a",
        "role_name": "Viewer",
        "organization_uuid": "org-1",
        "policy": '{"data": {"view": ["task"]}}',
    }
]


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    async def _no_sleep(attempt, base=0.5):
        return None

    monkeypatch.setattr("rolegate.sources.http.schedule_retry", _no_sleep)


def make_source(handler, retry_attempts=2):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpRoleSource(
        base_url="http://roles.test/", retry_attempts=retry_attempts, client=client
    )


@pytest.mark.asyncio
async def test_http_source_fetches_roles():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=ROLES)

    source = make_source(handler)
    records = await source.fetch_role_records("u-1", "org-1")

    assert [r.role_id for r in records] == ["0b6e7d2a"]
    assert records[0].role_name == "Viewer"
    request = seen[0]
    assert request.url.path == "/user/u-1/roles"
    assert request.url.params["organization_uuid"] == "org-1"
    assert request.headers["x-app-user-uuid"] == "u-1"
    assert request.headers["x-app-org-uuid"] == "org-1"


@pytest.mark.asyncio
async def test_http_source_retries_server_errors():
    responses = [httpx.Response(503), httpx.Response(200, json=ROLES)]

    source = make_source(lambda request: responses.pop(0))
    records = await source.fetch_role_records("u-1", "org-1")

    assert len(records) == 1
    assert responses == []


@pytest.mark.asyncio
async def test_http_source_retries_network_errors_then_fails():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    source = make_source(handler, retry_attempts=2)
    with pytest.raises(FetchFailure) as exc_info:
        await source.fetch_role_records("u-1", "org-1")

    assert len(calls) == 3
    assert "unreachable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_http_source_does_not_retry_client_errors():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404, json={"error": "not found"})

    source = make_source(handler)
    with pytest.raises(FetchFailure) as exc_info:
        await source.fetch_role_records("u-1", "org-1")

    assert len(calls) == 1
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"roles": ROLES}),
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json=[{"policy": "{}"}]),
    ],
)
async def test_http_source_rejects_malformed_bodies(response):
    source = make_source(lambda request: response)
    with pytest.raises(FetchFailure):
        await source.fetch_role_records("u-1", "org-1")


@pytest.mark.asyncio
async def test_http_source_owns_default_client():
    source = HttpRoleSource(base_url="http://roles.test")
    await source.connect()
    assert source._client is not None
    await source.disconnect()
    assert source._client is None


@pytest.mark.asyncio
async def test_inmemory_source_assign_and_revoke():
    source = InMemoryRoleSource()
    source.assign("u-1", "org-1", ROLES[0])
    source.assign("u-1", "org-1", {"role_uuid": "0b6e7d2a", "policy": "{}"})

    records = await source.fetch_role_records("u-1", "org-1")
    assert len(records) == 1
    assert records[0].policy == "{}"

    assert source.revoke("u-1", "org-1", "0b6e7d2a")
    assert not source.revoke("u-1", "org-1", "0b6e7d2a")
    assert await source.fetch_role_records("u-1", "org-1") == []
    assert await source.fetch_role_records("u-9", "org-1") == []


@pytest.mark.asyncio
async def test_inmemory_source_failure_mode():
    source = InMemoryRoleSource()
    source.fail_with = FetchFailure("down")
    with pytest.raises(FetchFailure):
        await source.fetch_role_records("u-1", "org-1")


@pytest.mark.asyncio
async def test_load_records_formats():
    from_list = load_records(ROLES, "u-1", "org-1")
    assert len(await from_list.fetch_role_records("u-1", "org-1")) == 1

    keyed = load_records({"u-2/org-2": ROLES}, "ignored", "ignored")
    assert len(await keyed.fetch_role_records("u-2", "org-2")) == 1
    assert await keyed.fetch_role_records("ignored", "ignored") == []

    with pytest.raises(FetchFailure):
        load_records({"no-slash": ROLES}, "u", "o")
    with pytest.raises(FetchFailure):
        load_records(json.loads('"text"'), "u", "o")


def test_get_role_source_backends(monkeypatch):
    monkeypatch.delenv("ROLEGATE_ROLE_SOURCE", raising=False)
    config = RolegateConfig()
    config.role_source.http.base_url = "http://api.example"

    assert isinstance(get_role_source(config=config), InMemoryRoleSource)
    http_source = get_role_source("http", config=config)
    assert isinstance(http_source, HttpRoleSource)
    assert http_source.base_url == "http://api.example"

    monkeypatch.setenv("ROLEGATE_ROLE_SOURCE", "HTTP")
    assert isinstance(get_role_source(config=config), HttpRoleSource)

    with pytest.raises(ValueError):
        get_role_source("kafka", config=config)


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_policy", [["view"], 42, True])
async def test_http_role_with_wrongly_typed_policy_is_skipped(bad_policy):
    body = [
        {"role_uuid": "good", "policy": '{"data": {"view": ["task"]}}'},
        {"role_uuid": "bad", "policy": bad_policy},
    ]
    source = make_source(lambda request: httpx.Response(200, json=body))
    ctx = PrincipalContext(source)

    await ctx.set_context("u-1", "org-1")

    assert ctx.state is ContextState.LOADED
    assert [r.role_id for r in ctx.roles] == ["good", "bad"]
    assert [f.role_id for f in ctx.failures] == ["bad"]
    assert ctx.allowed("view", "task")
