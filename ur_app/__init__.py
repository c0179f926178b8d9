"""Application layer: settings and the sync service lifecycle."""

from ur_app.api import SyncService, SyncSettings, load_settings

__all__ = ["SyncService", "SyncSettings", "load_settings"]
