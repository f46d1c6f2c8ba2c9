"""
Client for the hosted platform's REST, RPC and storage interfaces.

Row filters use the platform's PostgREST syntax, e.g.
``{"status": "eq.draft", "created_at": "lt.2025-01-01T00:00:00Z"}``.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .config import Settings, require_platform_credentials, settings as default_settings

logger = logging.getLogger(__name__)


class PlatformError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PlatformClient:
    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.http = httpx.Client(
            base_url=self.url,
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None, **kwargs) -> "PlatformClient":
        config = config or default_settings
        url, key = require_platform_credentials(config)
        return cls(url, key, timeout=config.http_timeout_seconds, **kwargs)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "PlatformClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # Database

    def rpc(self, name: str, params: Optional[dict] = None) -> Any:
        return self._request("POST", f"/rest/v1/rpc/{name}", json=params or {})

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        params: dict[str, Any] = {"select": columns}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", f"/rest/v1/{table}", params=params) or []

    def update(self, table: str, values: dict, filters: dict[str, str]) -> list[dict]:
        if not filters:
            raise PlatformError(f"Refusing to update every row of {table}")
        return self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=filters,
            json=values,
            headers={"Prefer": "return=representation"},
        ) or []

    # Storage

    def remove_objects(self, bucket: str, paths: list[str]) -> list[dict]:
        return self._request("DELETE", f"/storage/v1/object/{bucket}", json={"prefixes": paths}) or []

    def create_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        data = self._request(
            "POST",
            f"/storage/v1/object/sign/{bucket}/{quote(path)}",
            json={"expiresIn": expires_in},
        ) or {}
        signed = data.get("signedURL") or data.get("signedUrl")
        if not signed:
            raise PlatformError(f"No signed URL returned for {bucket}/{path}")
        return f"{self.url}/storage/v1{signed}" if signed.startswith("/") else signed

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{bucket}/{quote(path)}"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Platform request {method} {path} failed: {e}")
            raise PlatformError(f"Platform request failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = None
            if isinstance(body, dict):
                message = body.get("message") or body.get("error")
            message = message or response.text or f"HTTP {response.status_code}"
            logger.warning(f"Platform returned {response.status_code} for {method} {path}: {message}")
            raise PlatformError(message, status_code=response.status_code)

        if not response.content:
            return None
        return response.json()
