"""Settings model, file resolution and loading for the sync service."""

from __future__ import annotations

import logging
import math
import os
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ur_common.config.env import parse_bool_env, parse_list_env
from ur_common.errors import ConfigurationError
from ur_sync.domains.catalog import default_catalog
from ur_sync.domains.selection import known_ids

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 60.0
LOCAL_CONFIG_NAME = "unraid_sync.yaml"
CONFIG_DIR_NAME = "unraid-sync"
CONFIG_FILE_NAME = "config.yaml"

ENV_OVERRIDES: dict[str, str] = {
    "UR_BASE_URL": "base_url",
    "UR_API_TOKEN": "api_token",
    "UR_POLL_INTERVAL_SECONDS": "poll_interval_seconds",
    "UR_ALLOW_SELF_SIGNED": "allow_self_signed",
    "UR_ENABLED_DOMAINS": "enabled_domains",
    "UR_STORE_PATH": "store_path",
}


class SyncSettings(BaseModel):
    """Connection, polling and selection settings."""

    base_url: str = Field(description="Base URL of the Unraid server")
    api_token: str = Field(description="API key sent as x-api-key")
    poll_interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        description="Seconds between scheduled polls",
    )
    allow_self_signed: bool = Field(
        default=False, description="Accept self-signed TLS certificates"
    )
    request_timeout_seconds: float = Field(
        default=15.0, gt=0, description="Timeout of a single HTTP request"
    )
    enabled_domains: List[str] = Field(
        default_factory=lambda: default_catalog().default_ids(),
        description="Selected category ids",
    )
    store_path: Optional[Path] = Field(
        default=None,
        description="JSON file backing the object store; in-memory when unset",
    )
    log_level: Optional[str] = Field(default=None, description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any) -> str:
        text = str(value or "").strip().rstrip("/")
        if not text:
            raise ValueError("Base URL is not configured")
        if not text.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must start with http:// or https://, got: {text}")
        return text

    @field_validator("api_token", mode="before")
    @classmethod
    def _normalize_token(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("API token is not configured")
        return text

    @field_validator("poll_interval_seconds", mode="before")
    @classmethod
    def _coerce_interval(cls, value: Any) -> float:
        try:
            interval = float(value)
        except (TypeError, ValueError):
            return DEFAULT_POLL_INTERVAL_SECONDS
        if not math.isfinite(interval) or interval <= 0:
            return DEFAULT_POLL_INTERVAL_SECONDS
        return interval

    @field_validator("enabled_domains", mode="before")
    @classmethod
    def _filter_domains(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = parse_list_env(value)
        if not isinstance(value, (list, tuple, set)):
            value = []
        catalog = default_catalog()
        return known_ids(catalog, [str(item) for item in value]) or catalog.default_ids()

    @property
    def poll_interval_ms(self) -> int:
        return int(self.poll_interval_seconds * 1000)

    def save(self, path: Path) -> None:
        """Write the settings as YAML."""
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json", exclude_none=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False))


def resolve_config_path(
    explicit: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Path | None:
    """Find the settings file.

    Order: explicit path, ``UR_CONFIG_PATH``, ``./unraid_sync.yaml``, then
    ``$XDG_CONFIG_HOME/unraid-sync/config.yaml``. An explicit or env path is
    returned even if it does not exist; the fallbacks only when they do.
    """
    environ = os.environ if env is None else env
    if explicit:
        return Path(explicit).expanduser()
    env_path = environ.get("UR_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    local = (cwd or Path.cwd()) / LOCAL_CONFIG_NAME
    if local.exists():
        return local
    xdg = environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    candidate = base / CONFIG_DIR_NAME / CONFIG_FILE_NAME
    if candidate.exists():
        return candidate
    return None


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read settings file {path}", context={"path": path}, cause=exc
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Settings file {path} is not valid YAML", context={"path": path}, cause=exc
        ) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file {path} must contain a mapping", context={"path": path}
        )
    return data


def apply_env_overrides(
    data: dict[str, Any], env: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Return a copy of ``data`` with ``UR_*`` environment overrides applied."""
    environ = os.environ if env is None else env
    merged = dict(data)
    for variable, key in ENV_OVERRIDES.items():
        raw = environ.get(variable)
        if raw is None or raw == "":
            continue
        if key == "allow_self_signed":
            merged[key] = parse_bool_env(raw)
        elif key == "enabled_domains":
            merged[key] = parse_list_env(raw)
        else:
            merged[key] = raw
    return merged


def load_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> SyncSettings:
    """Load settings from YAML (or JSON) plus environment overrides."""
    resolved = resolve_config_path(path, env=env)
    data: dict[str, Any] = {}
    if resolved is not None:
        if not resolved.exists():
            raise ConfigurationError(
                f"Settings file {resolved} does not exist", context={"path": resolved}
            )
        data = _read_settings_file(resolved)
        logger.debug("Loaded settings from %s", resolved)
    data = apply_env_overrides(data, env)
    try:
        return SyncSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid settings",
            context={"path": resolved, "errors": exc.error_count()},
            cause=exc,
        ) from exc


def settings_template() -> dict[str, Any]:
    """Starter settings written by ``config init``."""
    return {
        "base_url": "https://tower.local",
        "api_token": "CHANGE_ME",
        "poll_interval_seconds": DEFAULT_POLL_INTERVAL_SECONDS,
        "allow_self_signed": False,
        "request_timeout_seconds": 15.0,
        "enabled_domains": default_catalog().default_ids(),
    }
