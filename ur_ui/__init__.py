"""Command-line interface for unraid-resource-sync."""
