"""
Client for the Stainless API.

Publishes an OpenAPI specification, and optionally a Stainless config, to
``POST {base_url}/api/spec`` as a multipart form. The API key comes from the
constructor or the STAINLESS_API_KEY environment variable.

Example:
    >>> api = StainlessApi()
    >>> await api.publish(
    ...     spec=Path("openapi.yaml").read_text(),
    ...     config=Path("stainless.yaml").read_text(),
    ...     branch="main",
    ...     project_name="acme",
    ... )
"""

from __future__ import annotations

import json
import logging
import os

import httpx

from stainless_tools.core.exceptions import (
    ConfigurationError,
    PublishError,
    StainlessApiError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.stainlessapi.com"
DEFAULT_TIMEOUT = 30.0


class StainlessApi:
    """
    Async Stainless API client.

    Attributes:
        base_url: API root, without trailing slash
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: API key (defaults to STAINLESS_API_KEY)
            base_url: API root (defaults to STAINLESS_API_URL, then the public API)
            timeout: Request timeout in seconds
            client: Pre-built httpx client, mainly for tests

        Raises:
            ConfigurationError: If no API key is available
        """
        self._api_key = api_key or os.environ.get("STAINLESS_API_KEY", "")
        if not self._api_key:
            raise ConfigurationError(
                "Stainless API key is required. Set STAINLESS_API_KEY environment "
                "variable or pass it in options."
            )
        self.base_url = (base_url or os.environ.get("STAINLESS_API_URL") or DEFAULT_BASE_URL).rstrip(
            "/"
        )
        self.timeout = timeout
        self._client = client

    async def publish(
        self,
        spec: str | bytes,
        config: str | bytes | None = None,
        branch: str | None = None,
        project_name: str | None = None,
        guess_config: bool = False,
    ) -> None:
        """
        Upload a specification (and optional config) to Stainless.

        Args:
            spec: OpenAPI specification content
            config: Stainless configuration content
            branch: SDK branch the specs are for
            project_name: Stainless project name
            guess_config: Ask Stainless to infer configuration from the spec

        Raises:
            ConfigurationError: If ``spec`` is empty
            StainlessApiError: If the API returns a non-2xx status
            PublishError: If the request could not be sent
        """
        if not spec:
            raise ConfigurationError("OpenAPI specification is required")

        files: dict[str, tuple[str, bytes, str]] = {
            "oasSpec": ("oasSpec", _to_bytes(spec), "text/plain"),
        }
        if config:
            files["stainlessConfig"] = ("stainlessConfig", _to_bytes(config), "text/plain")

        data: dict[str, str] = {}
        if project_name:
            data["projectName"] = project_name
        if branch:
            data["branch"] = branch
        if guess_config:
            data["guessConfig"] = "true"

        logger.info("Publishing specifications to Stainless...")

        url = f"{self.base_url}/api/spec"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            if self._client is not None:
                response = await self._client.post(url, headers=headers, data=data, files=files)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, headers=headers, data=data, files=files)
        except httpx.HTTPError as e:
            raise PublishError(f"Failed to publish to Stainless API: {e}") from e

        if not response.is_success:
            raise _api_error(response)

        logger.info(
            "Successfully published specifications to Stainless. This will not generate "
            "a new SDK if there are no actual changes."
        )


def _to_bytes(content: str | bytes) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


def _api_error(response: httpx.Response) -> StainlessApiError:
    """Build an error from a non-2xx response, preferring its JSON message."""
    text = response.text
    try:
        info = json.loads(text)
        if not isinstance(info, dict):
            raise ValueError("not an object")
    except ValueError:
        info = {"message": text or "Unknown error"}

    details = f"\nDetails: {info['details']}" if info.get("details") else ""
    message = f"API Error (HTTP {response.status_code}): {info.get('message')}{details}\nResponse: {text}"
    return StainlessApiError(message, status_code=response.status_code)
