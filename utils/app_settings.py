"""Application settings for the workflow API connection.

Values are resolved from environment variables first (``WORKFLOW_API_URL``,
``WORKFLOW_API_TIMEOUT``, ``WORKFLOW_API_TOKEN``), then from ``data/app.ini``
section ``[api]`` (keys ``base_url`` and ``timeout``), then from defaults.
The data directory can be moved with ``WORKFLOW_DATA_DIR``.
"""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"
DEFAULT_TIMEOUT = 10.0


class ApiSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    token: Optional[str] = None

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("base_url must not be empty")
        return value.rstrip("/")


def data_dir() -> Path:
    return Path(os.environ.get("WORKFLOW_DATA_DIR", "data"))


def _read_ini_section(section: str = "api") -> dict[str, str]:
    """Read ``[section]`` from ``data/app.ini`` if present."""

    ini_path = data_dir() / "app.ini"
    if not ini_path.exists():
        return {}
    cp = configparser.ConfigParser()
    try:
        cp.read(ini_path)
    except configparser.Error as exc:
        logger.warning("[settings] ignoring unreadable %s: %s", ini_path, exc)
        return {}
    if not cp.has_section(section):
        return {}
    return {key: value for key, value in cp.items(section)}


def load_api_settings() -> ApiSettings:
    ini = _read_ini_section("api")
    raw = {
        "base_url": os.environ.get("WORKFLOW_API_URL") or ini.get("base_url") or DEFAULT_BASE_URL,
        "timeout": os.environ.get("WORKFLOW_API_TIMEOUT") or ini.get("timeout") or DEFAULT_TIMEOUT,
        "token": os.environ.get("WORKFLOW_API_TOKEN") or None,
    }
    return ApiSettings.model_validate(raw)


__all__ = ["ApiSettings", "DEFAULT_BASE_URL", "DEFAULT_TIMEOUT", "data_dir", "load_api_settings"]
