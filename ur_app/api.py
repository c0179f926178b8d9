"""Public API surface for ur_app."""

from ur_app.config import (
    SyncSettings,
    apply_env_overrides,
    load_settings,
    resolve_config_path,
    settings_template,
)
from ur_app.service import SyncService, SyncTransport

__all__ = [
    "SyncService",
    "SyncSettings",
    "SyncTransport",
    "apply_env_overrides",
    "load_settings",
    "resolve_config_path",
    "settings_template",
]
