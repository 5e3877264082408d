"""Shared pytest fixtures for the cobrowse-demo test suite."""

from __future__ import annotations

import pytest

from cobrowse_demo.config import Config, SdkConfig, StaticConfig

SDK_KEY = "key123"
SDK_SECRET = "secret456"

_ENV_VARS = (
    "SDK_KEY",
    "SDK_SECRET",
    "PORT",
    "COBROWSE_SDK_KEY",
    "COBROWSE_SDK_SECRET",
    "COBROWSE_TOKEN_EXPIRY",
    "COBROWSE_DOMAIN",
    "COBROWSE_SERVE_HOST",
    "COBROWSE_SERVE_PORT",
    "COBROWSE_STATIC_ROOT",
    "COBROWSE_LOG_FORMAT",
    "COBROWSE_LOG_LEVEL",
    "COBROWSE_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep credentials from the developer's shell out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def configured():
    """Config with real-looking credentials and the packaged static pages."""
    return Config(sdk=SdkConfig(key=SDK_KEY, secret=SDK_SECRET))


@pytest.fixture
def unconfigured():
    """Config still holding the placeholder credentials."""
    return Config()


@pytest.fixture
def static_root(tmp_path):
    """Throwaway static tree with pages, a bundle and a nested directory."""
    root = tmp_path / "static"
    (root / "customer").mkdir(parents=True)
    (root / "agent").mkdir()
    (root / "dist").mkdir()
    (root / "guide").mkdir()
    (root / "customer" / "index.html").write_text("<h1>customer page</h1>")
    (root / "agent" / "index.html").write_text("<h1>agent page</h1>")
    (root / "dist" / "customer.js").write_text("console.log('bundle');")
    (root / "dist" / "customer.js.map").write_text("{}")
    (root / "dist" / "blob.bin").write_bytes(b"\x00\x01")
    (root / "guide" / "index.html").write_text("<h1>guide</h1>")
    (tmp_path / "secret.txt").write_text("outside the root")
    return root


@pytest.fixture
def configured_with_static(static_root):
    return Config(
        sdk=SdkConfig(key=SDK_KEY, secret=SDK_SECRET),
        static=StaticConfig(root=str(static_root)),
    )
