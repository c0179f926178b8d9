"""Reconciliation core: mirrors remote Unraid resources into an object store."""
