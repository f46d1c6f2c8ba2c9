"""
Unit Tests for the platform client

Requests are served by httpx.MockTransport so no network is used.
"""

import json
import httpx
import pytest

from core.baas import PlatformClient, PlatformError
from core.config import ConfigurationError, Settings

BASE_URL = "https://project.supabase.co"


def make_client(handler):
    return PlatformClient(BASE_URL + "/", "secret-key", transport=httpx.MockTransport(handler))


class TestRequests:
    """Tests for request shapes."""

    def test_auth_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json=[])

        make_client(handler).select("documents")

        assert seen["apikey"] == "secret-key"
        assert seen["authorization"] == "Bearer secret-key"

    def test_select_with_filters(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"id": 1}])

        rows = make_client(handler).select(
            "documents",
            columns="id,status",
            filters={"status": "eq.draft"},
            order="created_at.asc",
            limit=10,
        )

        assert rows == [{"id": 1}]
        assert seen["path"] == "/rest/v1/documents"
        assert seen["params"] == {"select": "id,status", "status": "eq.draft", "order": "created_at.asc", "limit": "10"}

    def test_rpc(self):
        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/rest/v1/rpc/get_affiliate_stats"
            assert json.loads(request.content) == {"p_user_id": "abc"}
            return httpx.Response(200, json={"available_balance": 5})

        assert make_client(handler).rpc("get_affiliate_stats", {"p_user_id": "abc"}) == {"available_balance": 5}

    def test_update_requires_filters(self):
        client = make_client(lambda request: httpx.Response(200, json=[]))

        with pytest.raises(PlatformError):
            client.update("documents", {"status": "deleted"}, {})

    def test_update_returns_rows(self):
        def handler(request):
            assert request.method == "PATCH"
            assert request.headers["prefer"] == "return=representation"
            return httpx.Response(200, json=[{"id": "d1", "status": "deleted"}])

        rows = make_client(handler).update("documents", {"status": "deleted"}, {"id": "eq.d1"})

        assert rows[0]["status"] == "deleted"

    def test_empty_response_body(self):
        client = make_client(lambda request: httpx.Response(204))

        assert client.rpc("noop") is None


class TestStorage:
    """Tests for storage helpers."""

    def test_relative_signed_url_is_prefixed(self):
        def handler(request):
            assert request.url.path == "/storage/v1/object/sign/documents/user/file.pdf"
            assert json.loads(request.content) == {"expiresIn": 600}
            return httpx.Response(200, json={"signedURL": "/object/sign/documents/user/file.pdf?token=t"})

        url = make_client(handler).create_signed_url("documents", "user/file.pdf", expires_in=600)

        assert url == f"{BASE_URL}/storage/v1/object/sign/documents/user/file.pdf?token=t"

    def test_missing_signed_url(self):
        client = make_client(lambda request: httpx.Response(200, json={}))

        with pytest.raises(PlatformError):
            client.create_signed_url("documents", "user/file.pdf")

    def test_public_url(self):
        client = make_client(lambda request: httpx.Response(200))

        assert client.public_url("logos", "brand.png") == f"{BASE_URL}/storage/v1/object/public/logos/brand.png"


class TestErrors:
    """Tests for error translation."""

    def test_error_message_from_body(self):
        client = make_client(lambda request: httpx.Response(404, json={"message": "relation not found"}))

        with pytest.raises(PlatformError) as exc:
            client.select("missing")

        assert exc.value.status_code == 404
        assert str(exc.value) == "relation not found"

    def test_error_with_text_body(self):
        client = make_client(lambda request: httpx.Response(502, text="Bad gateway"))

        with pytest.raises(PlatformError) as exc:
            client.select("documents")

        assert str(exc.value) == "Bad gateway"

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PlatformError) as exc:
            make_client(handler).select("documents")

        assert exc.value.status_code is None


class TestFromSettings:
    """Tests for building the client from configuration."""

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            PlatformClient.from_settings(Settings(_env_file=None, supabase_url="", supabase_anon_key=""))

    def test_from_settings(self):
        config = Settings(_env_file=None, supabase_url=BASE_URL, supabase_anon_key="anon", http_timeout_seconds=5)

        with PlatformClient.from_settings(config) as client:
            assert client.url == BASE_URL
            assert client.http.timeout.read == 5
