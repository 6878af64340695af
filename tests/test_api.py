"""
Tests for the Stainless API client.

Uses httpx.MockTransport so no network traffic leaves the process.
"""

from __future__ import annotations

import httpx
import pytest

from stainless_tools.core.exceptions import ConfigurationError, PublishError, StainlessApiError
from stainless_tools.core.publish.api import DEFAULT_BASE_URL, StainlessApi


def make_api(handler, **kwargs) -> StainlessApi:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StainlessApi(api_key="sk-test", client=client, **kwargs)


class TestStainlessApiSetup:
    """Tests for API key and base URL resolution."""

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("STAINLESS_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="Stainless API key is required"):
            StainlessApi()

    def test_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STAINLESS_API_KEY", "sk-env")
        monkeypatch.delenv("STAINLESS_API_URL", raising=False)

        api = StainlessApi()

        assert api.base_url == DEFAULT_BASE_URL

    def test_base_url_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STAINLESS_API_URL", "http://localhost:4010/")

        api = StainlessApi(api_key="sk-test")

        assert api.base_url == "http://localhost:4010"


class TestPublish:
    """Tests for StainlessApi.publish."""

    @pytest.mark.asyncio
    async def test_sends_multipart_form(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("STAINLESS_API_URL", raising=False)
        seen: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = request.read()
            return httpx.Response(200, json={})

        api = make_api(handler)
        await api.publish(
            "openapi: 3.1.0\n",
            config="organization: acme\n",
            branch="cli/1234abcd",
            project_name="acme",
            guess_config=True,
        )

        body = seen["body"]
        assert seen["url"] == f"{DEFAULT_BASE_URL}/api/spec"
        assert seen["auth"] == "Bearer sk-test"
        assert b'name="oasSpec"' in body
        assert b"openapi: 3.1.0" in body
        assert b'name="stainlessConfig"' in body
        assert b'name="projectName"' in body
        assert b"cli/1234abcd" in body
        assert b'name="guessConfig"' in body

    @pytest.mark.asyncio
    async def test_optional_fields_omitted(self) -> None:
        seen: dict[str, bytes] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.read()
            return httpx.Response(201)

        await make_api(handler).publish("openapi: 3.1.0\n")

        assert b'name="stainlessConfig"' not in seen["body"]
        assert b'name="guessConfig"' not in seen["body"]
        assert b'name="projectName"' not in seen["body"]

    @pytest.mark.asyncio
    async def test_empty_spec_rejected(self) -> None:
        api = make_api(lambda request: httpx.Response(200))

        with pytest.raises(ConfigurationError, match="OpenAPI specification is required"):
            await api.publish("")

    @pytest.mark.asyncio
    async def test_json_error_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "Invalid spec", "details": "line 3"})

        with pytest.raises(StainlessApiError) as exc_info:
            await make_api(handler).publish("openapi: 3.1.0\n")

        message = str(exc_info.value)
        assert message.startswith("API Error (HTTP 422): Invalid spec\nDetails: line 3\nResponse: ")
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_text_error_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(StainlessApiError) as exc_info:
            await make_api(handler).publish("openapi: 3.1.0\n")

        assert str(exc_info.value) == "API Error (HTTP 502): Bad Gateway\nResponse: Bad Gateway"

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PublishError, match="Failed to publish to Stainless API"):
            await make_api(handler).publish("openapi: 3.1.0\n")
