"""TokenServerClient: async httpx client for the token server.

Does what the customer and agent pages do before starting or joining a
session: POST the desired role to /token and read the token back.

Usage:
    async with TokenServerClient("http://localhost:8080") as client:
        grant = await client.fetch_token(Role.AGENT)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from cobrowse_demo.errors import CobrowseError, ErrorCode
from cobrowse_demo.token_codec import Role

logger = logging.getLogger("cobrowse_demo.client")


class TokenGrant(BaseModel):
    """Body returned by POST /token."""
    token: str
    role: int
    expires_in: int = Field(alias="expiresIn")
    domain: str

    model_config = {"populate_by_name": True}


class TokenServerClient:
    """Async HTTP client for the token server. Failed fetches raise CobrowseError."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got: {base_url!r}")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TokenServerClient":
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_token(self, role: int = Role.CUSTOMER) -> TokenGrant:
        """POST {"role": role} to /token. Raises CobrowseError(TOKEN_FETCH_FAILED)."""
        client = self._require_client()
        try:
            resp = await client.post("/token", json={"role": int(role)})
        except httpx.HTTPError as exc:
            logger.warning("Token fetch failed: %s", exc)
            raise CobrowseError(ErrorCode.TOKEN_FETCH_FAILED, f"Token fetch failed: {exc}") from exc
        if not resp.is_success:
            raise CobrowseError(
                ErrorCode.TOKEN_FETCH_FAILED,
                f"Token fetch failed: {resp.status_code}",
                details={"status": resp.status_code, "body": _error_body(resp)},
            )
        try:
            grant = TokenGrant(**resp.json())
        except (ValueError, ValidationError) as exc:
            logger.warning("Token fetch returned an unusable body (status %s)", resp.status_code)
            raise CobrowseError(
                ErrorCode.TOKEN_FETCH_FAILED,
                "Token fetch failed: unexpected response body",
                details={"status": resp.status_code, "body": resp.text[:200]},
            ) from exc
        logger.debug("Token received for role %s", role)
        return grant

    async def health(self) -> bool:
        """Check server health. Returns True if reachable and healthy."""
        try:
            resp = await self._require_client().get("/health")
            return resp.status_code == 200
        except httpx.HTTPError as exc:
            logger.warning("Health check failed: %s", exc)
            return False

    def _require_client(self) -> httpx.AsyncClient:
        """Return the active httpx client or raise RuntimeError."""
        if self._client is None:
            raise RuntimeError(
                "TokenServerClient must be used as an async context manager "
                "(`async with TokenServerClient(...) as client:`)"
            )
        return self._client


def _error_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
