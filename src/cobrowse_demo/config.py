"""Configuration for the cobrowse demo. YAML-based with env var expansion and env var overlay."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

PLACEHOLDER_SDK_KEY = "YOUR_SDK_KEY_HERE"
PLACEHOLDER_SDK_SECRET = "YOUR_SDK_SECRET_HERE"

_PACKAGE_STATIC = Path(__file__).parent / "static"


# --- Config Models ---


class SdkConfig(BaseModel):
    """Credentials and token settings for the cobrowse SDK."""
    key: str = PLACEHOLDER_SDK_KEY
    secret: str = PLACEHOLDER_SDK_SECRET
    token_expiry: int = Field(default=3600, gt=0)  # seconds
    domain: str = "us01-zcb.zoom.us"

    @property
    def is_configured(self) -> bool:
        """False while key or secret is empty or still the shipped placeholder."""
        if not self.key or not self.secret:
            return False
        return self.key != PLACEHOLDER_SDK_KEY and self.secret != PLACEHOLDER_SDK_SECRET


class ServeConfig(BaseModel):
    port: int = 8080
    host: str = "0.0.0.0"


class StaticConfig(BaseModel):
    root: str = str(_PACKAGE_STATIC)
    cache_max_age: int = 3600


class LoggingConfig(BaseModel):
    """Logging configuration."""
    format: str = "text"   # "text" or "json"
    level: str = "INFO"


class Config(BaseModel):
    sdk: SdkConfig = Field(default_factory=SdkConfig)
    serve: ServeConfig = Field(default_factory=ServeConfig)
    static: StaticConfig = Field(default_factory=StaticConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def redacted(self) -> dict[str, Any]:
        """Dump config with the SDK secret masked."""
        data = self.model_dump()
        if data["sdk"]["secret"]:
            data["sdk"]["secret"] = "***" if self.sdk.is_configured else "(not set)"
        return data


# --- Helpers ---

_ENV_PATTERN = re.compile(r"\$\{(\w+)\}")


def get_config_dir() -> Path:
    return Path.home() / ".cobrowse"


def get_config_path() -> Path:
    return get_config_dir() / "config.yaml"


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR} in strings."""
    if isinstance(data, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), data)
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(v) for v in data]
    return data


# Env vars understood by the original deployment (Cloud Run sets PORT).
# Applied first so the COBROWSE_* names below take precedence.
_PLAIN_ENV_VAR_MAP: dict[str, tuple[str, str]] = {
    "SDK_KEY": ("sdk", "key"),
    "SDK_SECRET": ("sdk", "secret"),
    "PORT": ("serve", "port"),
}

# Mapping of COBROWSE_* env var suffixes to (section, field) tuples.
_ENV_VAR_MAP: dict[str, tuple[str, str]] = {
    "SDK_KEY": ("sdk", "key"),
    "SDK_SECRET": ("sdk", "secret"),
    "TOKEN_EXPIRY": ("sdk", "token_expiry"),
    "DOMAIN": ("sdk", "domain"),
    "SERVE_HOST": ("serve", "host"),
    "SERVE_PORT": ("serve", "port"),
    "STATIC_ROOT": ("static", "root"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_LEVEL": ("logging", "level"),
}


def _get_section_models() -> dict[str, type[BaseModel]]:
    return {
        "sdk": SdkConfig,
        "serve": ServeConfig,
        "static": StaticConfig,
        "logging": LoggingConfig,
    }


def _cast(section: str, field: str, raw_val: str) -> Any:
    """Convert an env string to the type annotated on the pydantic field."""
    model_cls = _get_section_models().get(section)
    field_info = model_cls.model_fields.get(field) if model_cls is not None else None
    if field_info is None or field_info.annotation is not int:
        return raw_val
    try:
        return int(raw_val)
    except ValueError:
        return raw_val  # let pydantic report it


def _apply_env_overlay(data: dict[str, Any]) -> dict[str, Any]:
    """Apply plain and COBROWSE_* environment variables on top of YAML data.

    Secret fields are applied but never logged.
    """
    overlays = [
        (name, target) for name, target in _PLAIN_ENV_VAR_MAP.items()
    ] + [
        (f"COBROWSE_{suffix}", target) for suffix, target in _ENV_VAR_MAP.items()
    ]
    for env_key, (section, field) in overlays:
        raw_val = os.environ.get(env_key)
        if raw_val is None:
            continue
        if section not in data or not isinstance(data[section], dict):
            data[section] = {}
        data[section][field] = _cast(section, field, raw_val)
    return data


def load_config(path: Path | None = None) -> Config:
    """Load config from YAML, expanding env vars, then applying the env overlay."""
    config_path = path or get_config_path()
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        data = _expand_env_vars(raw)
    else:
        data = {}
    data = _apply_env_overlay(data)
    return Config(**data)


def save_config(config: Config, path: Path | None = None) -> None:
    """Save config to YAML."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
    os.chmod(config_path, 0o600)  # holds the SDK secret
