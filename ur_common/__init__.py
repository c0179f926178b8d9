"""Shared helpers for unraid-resource-sync."""

from ur_common.api import URError, configure_logging

__all__ = ["URError", "configure_logging"]
