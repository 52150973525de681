"""Application settings loaded from YAML (or JSON) plus environment overrides."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

CONFIG_ENV = "FOLDERTREE_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.foldertree/config.yaml")

# environment variable -> settings field
ENV_OVERRIDES = {
    "FOLDERTREE_BACKEND_URL": "backend_url",
    "FOLDERTREE_TOKEN": "token",
    "FOLDERTREE_TIMEOUT": "timeout",
    "FOLDERTREE_DEFAULT_CATEGORY": "default_category",
}


class Settings(BaseModel):
    """Connection and behaviour settings for the folder tree client."""

    backend_url: str = Field(default="http://127.0.0.1:8000", description="Base URL of the folder backend")
    api_prefix: str = Field(default="/api/folders", description="Path prefix of the folder routes")
    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")
    token: str | None = Field(default=None, description="Bearer token sent with every request")
    default_category: str = Field(default="profesional_independiente")
    log_level: str = Field(default="INFO")
    logfile: str | None = None

    @field_validator("backend_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("backend_url must include the scheme (http:// or https://)")
        return value.rstrip("/")

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        return "/" + value.strip("/") if value.strip("/") else ""

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


def load_settings(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from a config file and the environment.

    The file is taken from ``path``, then ``$FOLDERTREE_CONFIG``, then
    ``~/.foldertree/config.yaml``; a missing default file is not an error.
    Environment variables listed in ENV_OVERRIDES win over file values.
    """
    env = os.environ if environ is None else environ
    payload: dict[str, Any] = {}
    candidate = path or env.get(CONFIG_ENV)
    if candidate is not None:
        payload.update(_read_config_file(Path(candidate).expanduser()))
    else:
        default = DEFAULT_CONFIG_PATH.expanduser()
        if default.exists():
            payload.update(_read_config_file(default))
    for var, field_name in ENV_OVERRIDES.items():
        if env.get(var):
            payload[field_name] = env[var]
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings: {exc}") from exc


def _read_config_file(path: Path) -> dict[str, Any]:
    """Interpret a config file as YAML first, falling back to JSON."""
    text = path.read_text()
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


__all__ = ["Settings", "load_settings"]
