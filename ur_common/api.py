"""Public API surface for ur_common."""

from ur_common.config.env import parse_bool_env, parse_list_env
from ur_common.errors import (
    ConfigurationError,
    ControlActionError,
    StoreError,
    SyncCycleError,
    TransportError,
    URError,
    describe_error,
    error_to_payload,
)
from ur_common.logging import configure_logging, truncate_for_log

__all__ = [
    "ConfigurationError",
    "ControlActionError",
    "StoreError",
    "SyncCycleError",
    "TransportError",
    "URError",
    "configure_logging",
    "describe_error",
    "error_to_payload",
    "parse_bool_env",
    "parse_list_env",
    "truncate_for_log",
]
