"""Tests for TokenServerClient using httpx MockTransport and in-process ASGI app, no live server."""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from cobrowse_demo.client import TokenGrant, TokenServerClient
from cobrowse_demo.errors import CobrowseError, ErrorCode
from cobrowse_demo.server import create_app
from cobrowse_demo.token_codec import Role, decode_token


# ------------------------------------------------------------------ #
#  Helpers                                                            #
# ------------------------------------------------------------------ #

def _grant_handler(seen: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content or b"{}")
        return httpx.Response(
            200,
            json={"token": "h.c.s", "role": body.get("role", 1), "expiresIn": 3600, "domain": "us01-zcb.zoom.us"},
        )
    return handler


# ------------------------------------------------------------------ #
#  Initialization tests                                               #
# ------------------------------------------------------------------ #

def test_init_rejects_missing_scheme():
    with pytest.raises(ValueError, match="http://"):
        TokenServerClient("localhost:8080")


def test_init_strips_trailing_slash():
    c = TokenServerClient("https://demo.example.com/")
    assert c._base_url == "https://demo.example.com"


@pytest.mark.asyncio
async def test_require_client_raises_without_context_manager():
    client = TokenServerClient("http://localhost:8080")
    with pytest.raises(RuntimeError, match="context manager"):
        await client.fetch_token()


@pytest.mark.asyncio
async def test_context_manager_closes_client():
    async with TokenServerClient("http://localhost:8080", transport=httpx.MockTransport(_grant_handler([]))) as client:
        assert client._client is not None
    assert client._client is None


# ------------------------------------------------------------------ #
#  fetch_token() tests                                                #
# ------------------------------------------------------------------ #

@pytest.mark.asyncio
async def test_fetch_token_posts_role():
    seen: list[httpx.Request] = []
    transport = httpx.MockTransport(_grant_handler(seen))
    async with TokenServerClient("http://localhost:8080", transport=transport) as client:
        grant = await client.fetch_token(Role.AGENT)

    assert isinstance(grant, TokenGrant)
    assert grant.token == "h.c.s"
    assert grant.role == 2
    assert grant.expires_in == 3600
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/token"
    assert json.loads(seen[0].content) == {"role": 2}


@pytest.mark.asyncio
async def test_fetch_token_error_status_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": {"code": "CONFIGURATION_MISSING", "message": "unset"}})

    async with TokenServerClient("http://localhost:8080", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(CobrowseError) as exc_info:
            await client.fetch_token()

    assert exc_info.value.code == ErrorCode.TOKEN_FETCH_FAILED
    assert exc_info.value.message == "Token fetch failed: 503"
    assert exc_info.value.details["status"] == 503


@pytest.mark.asyncio
async def test_fetch_token_redirect_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "/login"})

    async with TokenServerClient("http://localhost:8080", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(CobrowseError) as exc_info:
            await client.fetch_token()

    assert exc_info.value.code == ErrorCode.TOKEN_FETCH_FAILED
    assert exc_info.value.message == "Token fetch failed: 302"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>proxy login</html>"),
        httpx.Response(200, json={"unexpected": 1}),
    ],
)
async def test_fetch_token_unusable_body_raises(response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    async with TokenServerClient("http://localhost:8080", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(CobrowseError) as exc_info:
            await client.fetch_token()

    assert exc_info.value.code == ErrorCode.TOKEN_FETCH_FAILED
    assert exc_info.value.details["status"] == 200


@pytest.mark.asyncio
async def test_fetch_token_connect_error_raises(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with TokenServerClient("http://localhost:8080", transport=httpx.MockTransport(handler)) as client:
        with caplog.at_level(logging.WARNING, logger="cobrowse_demo.client"):
            with pytest.raises(CobrowseError) as exc_info:
                await client.fetch_token()

    assert exc_info.value.code == ErrorCode.TOKEN_FETCH_FAILED
    assert "connection refused" in caplog.text


@pytest.mark.asyncio
async def test_fetch_token_against_app(configured):
    """End to end through the real app, in process."""
    transport = httpx.ASGITransport(app=create_app(configured))
    async with TokenServerClient("http://testserver", transport=transport) as client:
        grant = await client.fetch_token(Role.AGENT)
        healthy = await client.health()

    assert healthy is True
    _, claims = decode_token(grant.token)
    assert claims.role_type == 2
    assert claims.app_key == "key123"


# ------------------------------------------------------------------ #
#  health() tests                                                     #
# ------------------------------------------------------------------ #

@pytest.mark.asyncio
async def test_health_false_on_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    async with TokenServerClient("http://localhost:8080", transport=httpx.MockTransport(handler)) as client:
        assert await client.health() is False
