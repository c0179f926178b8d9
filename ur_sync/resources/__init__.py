"""Runtime-discovered resource families and their reconciliation."""
