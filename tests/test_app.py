"""
HTTP tests for the application: masking, CORS, health and item endpoints.
"""

import json

import pytest
from starlette.testclient import TestClient

from keygate_core.app import create_app
from keygate_core.audit import AccessLogger
from keygate_core.config import Settings, parse_access_config
from keygate_core.rate_limit import InMemoryRateLimiter
from keygate_core.storage import JsonItemStore

ACCESS = {
    "rate_limit": {"default": {"window_seconds": 60, "max_requests": 100}},
    "keys": {
        "admin-key-123456": {"scopes": ["read", "write"]},
        "reader-key-123456": {"routes": ["GET:/items", "GET:/items/{id}"]},
        "limited-key-12345": {"scopes": ["read"], "rate_limit": {"max_requests": 1}},
        "nothing-key-12345": {"routes": [], "scopes": []},
    },
}
ADMIN = {"X-Api-Key": "admin-key-123456"}
READER = {"X-Api-Key": "reader-key-123456"}


def read_log(path):
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        config_file=str(tmp_path / "config.json"),
        data_file=str(tmp_path / "data.json"),
        rate_limit_dir=str(tmp_path / "ratelimit"),
        access_log_file=str(tmp_path / "api.log"),
    )


@pytest.fixture
def log_path(settings):
    from pathlib import Path

    return Path(settings.access_log_file)


@pytest.fixture
def client(settings, clock):
    app = create_app(
        settings,
        access_config=parse_access_config(ACCESS),
        rate_limiter=InMemoryRateLimiter(clock=clock),
    )
    return TestClient(app)


class TestMasking:
    """Every refusal should look the same to the caller."""

    @pytest.mark.parametrize("headers,path,method,reason", [
        ({}, "/items", "GET", "NO_KEY"),
        ({"X-Api-Key": "unknown"}, "/items", "GET", "INVALID_KEY"),
        ({"X-Api-Key": "nothing-key-12345"}, "/items", "GET", "NO_PERMISSION"),
        (READER, "/items", "POST", "NO_PERMISSION"),
        (ADMIN, "/nowhere", "GET", "NOT_FOUND"),
        (ADMIN, "/items/99", "GET", "NOT_FOUND"),
        (ADMIN, "/items", "DELETE", "NOT_FOUND"),
    ])
    def test_denials_are_masked(self, client, log_path, headers, path, method, reason):
        """Should render 404 Not found and log the distinct reason."""
        response = client.request(method, path, headers=headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

        entry = read_log(log_path)[-1]
        assert entry["outcome"] == "DENY"
        assert entry["reason"] == reason
        assert entry["status"] == 404
        assert entry["path"] == path

    @pytest.mark.parametrize("method,headers,reason", [
        ("TRACE", ADMIN, "NOT_FOUND"),
        ("PROPFIND", {}, "NO_KEY"),
        ("PURGE", READER, "NO_PERMISSION"),
    ])
    def test_unlisted_methods_are_masked(self, client, log_path, method, headers, reason):
        """Any HTTP method should go through authorization and the access log."""
        response = client.request(method, "/items", headers=headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

        entry = read_log(log_path)[-1]
        assert entry["method"] == method
        assert entry["outcome"] == "DENY"
        assert entry["reason"] == reason

    def test_rate_limit_is_masked(self, client, log_path):
        """The second call for a one-request key should be a masked RATE_LIMIT."""
        headers = {"X-Api-Key": "limited-key-12345"}

        assert client.get("/items", headers=headers).status_code == 200
        response = client.get("/items", headers=headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert read_log(log_path)[-1]["reason"] == "RATE_LIMIT"

    def test_missing_key_logs_sentinel(self, client, log_path):
        """Requests without a key should log '(none)'."""
        client.get("/items")

        assert read_log(log_path)[-1]["key"] == "(none)"

    def test_forwarded_for_is_logged(self, client, log_path):
        """The first X-Forwarded-For address should be logged as the ip."""
        client.get("/items", headers={**ADMIN, "X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        assert read_log(log_path)[-1]["ip"] == "203.0.113.9"


class TestItemsEndpoints:
    """End-to-end item flow through authorization and dispatch."""

    def test_create_get_update(self, client, log_path):
        """POST creates, GET reads, PUT updates an item."""
        created = client.post("/items", json={"name": " widget "}, headers=ADMIN)

        assert created.status_code == 201
        assert created.headers["location"] == "/items/1"
        assert created.json()["name"] == "widget"

        fetched = client.get("/items/1", headers=READER)
        assert fetched.status_code == 200
        assert fetched.json() == created.json()

        updated = client.put("/items/1", json={"name": "gadget"}, headers=ADMIN)
        assert updated.status_code == 200
        assert updated.json()["name"] == "gadget"
        assert updated.json()["createdAt"] == created.json()["createdAt"]

        entry = read_log(log_path)[-1]
        assert entry["outcome"] == "ALLOW"
        assert entry["reason"] == "OK"
        assert entry["key"] == "admin-key-123456"
        assert entry["method"] == "PUT"

    def test_put_creates_missing_item(self, client):
        """PUT on a free id should create it with 201 and Location."""
        response = client.put("/items/7", json={"name": "new"}, headers=ADMIN)

        assert response.status_code == 201
        assert response.headers["location"] == "/items/7"
        assert response.json()["id"] == 7

    def test_list_items(self, client):
        """GET /items should list items in id order."""
        client.put("/items/3", json={"name": "c"}, headers=ADMIN)
        client.post("/items", json={"name": "d"}, headers=ADMIN)

        response = client.get("/items", headers=READER)

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [3, 4]

    @pytest.mark.parametrize("body", [{"name": "  "}, {"other": "x"}, {}])
    def test_invalid_name(self, client, log_path, body):
        """Missing or blank names should be refused as INPUT_INVALID."""
        response = client.post("/items", json=body, headers=ADMIN)

        assert response.status_code == 404
        assert read_log(log_path)[-1]["reason"] == "INPUT_INVALID"

    def test_api_key_query_parameter(self, client):
        """The key should be accepted from ?api_key=."""
        assert client.get("/items?api_key=reader-key-123456").status_code == 200

    def test_authorization_header(self, client):
        """The key should be accepted from 'Authorization: ApiKey'."""
        response = client.get("/items", headers={"Authorization": "ApiKey reader-key-123456"})

        assert response.status_code == 200


class TestCors:
    """Tests for CORS headers and preflight."""

    def test_allow_origin_on_every_response(self, client):
        """Success and denial responses should both carry the allowed origin."""
        origin = {"Origin": "https://app.example"}

        for response in (client.get("/items", headers={**ADMIN, **origin}), client.get("/items", headers=origin)):
            assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight_without_key(self, client, log_path):
        """A preflight should answer 204 with the allowed methods and headers."""
        response = client.options("/items/1", headers={
            "Origin": "https://app.example",
            "Access-Control-Request-Method": "PUT",
            "Access-Control-Request-Headers": "X-API-Key, Content-Type",
        })

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, PUT, OPTIONS"
        allowed = response.headers["access-control-allow-headers"].lower()
        assert "x-api-key" in allowed
        assert "authorization" in allowed
        assert read_log(log_path) == []

    def test_plain_options_without_key(self, client, log_path):
        """OPTIONS without CORS headers should also answer 204 without authorization."""
        response = client.options("/anything/at/all")

        assert response.status_code == 204
        assert read_log(log_path) == []

    def test_explicit_origins(self, settings, clock):
        """Only listed origins should be echoed back."""
        settings.cors_origins = ["https://app.example"]
        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            rate_limiter=InMemoryRateLimiter(clock=clock),
        ))

        allowed = client.get("/items", headers={**ADMIN, "Origin": "https://app.example"})
        other = client.get("/items", headers={**ADMIN, "Origin": "https://evil.example"})

        assert allowed.headers["access-control-allow-origin"] == "https://app.example"
        assert "access-control-allow-origin" not in other.headers


class TestHealth:
    """Tests for the health endpoints."""

    def test_health_without_key(self, client, log_path):
        """GET /health should answer without a key and not be access logged."""
        from keygate_core import __version__

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "keygate"
        assert body["version"] == __version__
        assert body["components"]["storage"]["status"] == "ok"
        assert read_log(log_path) == []

    def test_liveness(self, client):
        """The liveness probe should always answer."""
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_unhealthy_storage(self, settings, tmp_path, clock):
        """A broken store should report unhealthy with 503."""
        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            item_store=JsonItemStore(tmp_path),
            rate_limiter=InMemoryRateLimiter(clock=clock),
        ))

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestFailures:
    """Tests for storage faults and unexpected handler errors."""

    def test_storage_error_masked(self, settings, tmp_path, log_path, clock):
        """StorageError should be a masked 404 with reason STORAGE_ERROR."""
        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            item_store=JsonItemStore(tmp_path),
            rate_limiter=InMemoryRateLimiter(clock=clock),
        ))

        response = client.get("/items", headers=ADMIN)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert read_log(log_path)[-1]["reason"] == "STORAGE_ERROR"

    def test_storage_error_unmasked(self, settings, tmp_path, log_path, clock):
        """With masking off, StorageError should be 503 Service unavailable."""
        settings.mask_storage_errors = False
        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            item_store=JsonItemStore(tmp_path),
            rate_limiter=InMemoryRateLimiter(clock=clock),
        ))

        response = client.get("/items", headers=ADMIN)

        assert response.status_code == 503
        assert response.json() == {"error": "Service unavailable"}
        entry = read_log(log_path)[-1]
        assert entry["reason"] == "STORAGE_ERROR"
        assert entry["status"] == 503

    def test_unexpected_exception(self, settings, log_path, clock):
        """Handler crashes should be a masked 404 with reason INTERNAL_ERROR."""
        def explode(path_vars, body):
            raise RuntimeError("boom")

        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            route_table={"crash": {"noParam": {"GET": explode}}},
            rate_limiter=InMemoryRateLimiter(clock=clock),
        ))

        response = client.get("/crash", headers=ADMIN)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert read_log(log_path)[-1]["reason"] == "INTERNAL_ERROR"

    def test_custom_pattern_table(self, settings, clock):
        """A pattern table should be usable in place of the item routes."""
        def show_user(path_vars, body):
            return {"data": {"user": path_vars["userId"]}}

        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            route_table=[{
                "pattern": r"#^/api/users/(\d+)$#",
                "methods": {"GET": show_user},
                "pathVars": ["userId"],
            }],
            rate_limiter=InMemoryRateLimiter(clock=clock),
        ))

        response = client.get("/api/users/456", headers=ADMIN)

        assert response.status_code == 200
        assert response.json() == {"user": 456}


class TestConcurrentRequests:
    """Concurrent requests against one key over the ASGI interface."""

    @pytest.mark.asyncio
    async def test_budget_is_shared(self, settings, log_path, clock):
        """Parallel requests for one key should admit exactly max_requests."""
        import asyncio

        import httpx

        app = create_app(
            settings,
            access_config=parse_access_config(
                {"keys": {"burst-key-123456": {"scopes": ["read"], "rate_limit": {"max_requests": 5}}}}
            ),
            rate_limiter=InMemoryRateLimiter(clock=clock),
        )
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            responses = await asyncio.gather(*[
                ac.get("/items", headers={"X-Api-Key": "burst-key-123456"}) for _ in range(8)
            ])

        statuses = [response.status_code for response in responses]
        assert statuses.count(200) == 5
        assert statuses.count(404) == 3
        assert sorted(entry["reason"] for entry in read_log(log_path)) == ["OK"] * 5 + ["RATE_LIMIT"] * 3


class TestRateLimitState:
    """Rate limit state faults at the HTTP boundary."""

    def test_undecodable_state_file_starts_fresh(self, settings, log_path):
        """A state file that is not UTF-8 should count as no state."""
        from keygate_core.rate_limit import FileRateLimiter

        state_path = FileRateLimiter(settings.rate_limit_dir).state_path("admin-key-123456")
        state_path.parent.mkdir(parents=True)
        state_path.write_bytes(b"\xff\xfe")
        client = TestClient(create_app(settings, access_config=parse_access_config(ACCESS)))

        response = client.get("/items", headers=ADMIN)

        assert response.status_code == 200
        assert read_log(log_path)[-1]["reason"] == "OK"
        assert json.loads(state_path.read_text())["count"] == 1

    def test_unusable_state_directory_denies(self, settings, tmp_path, log_path):
        """Limiter I/O failure should be a masked RATE_LIMIT denial."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        settings.rate_limit_dir = str(blocker)
        client = TestClient(create_app(settings, access_config=parse_access_config(ACCESS)))

        response = client.get("/items", headers=ADMIN)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        entry = read_log(log_path)[-1]
        assert entry["outcome"] == "DENY"
        assert entry["reason"] == "RATE_LIMIT"

    def test_limiter_crash_is_masked(self, settings, log_path):
        """An unexpected limiter error should be a masked INTERNAL_ERROR denial."""
        class BrokenRateLimiter(InMemoryRateLimiter):
            def check_and_consume(self, key, window_seconds, max_requests):
                raise RuntimeError("limiter down")

        client = TestClient(create_app(
            settings,
            access_config=parse_access_config(ACCESS),
            rate_limiter=BrokenRateLimiter(),
        ))

        response = client.get("/items", headers=ADMIN)

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        entry = read_log(log_path)[-1]
        assert entry["outcome"] == "DENY"
        assert entry["reason"] == "INTERNAL_ERROR"
        assert entry["key"] == "(none)"
