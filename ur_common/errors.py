"""Shared error taxonomy for unraid-resource-sync."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class URError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__


class TransportError(URError):
    """The remote API could not be queried or mutated."""


class StoreError(URError):
    """An object-store primitive failed."""


class ConfigurationError(URError):
    """Failure due to invalid or incomplete configuration."""


class ControlActionError(URError):
    """A command node could not be dispatched to the remote server."""


class SyncCycleError(URError):
    """A polling cycle failed after the payload was fetched."""


def describe_error(error: BaseException) -> str:
    """Flatten an exception and its causes into one log-friendly line."""
    segments = [str(error) or error.__class__.__name__]
    cause = error.__cause__
    while cause is not None:
        segments.append(f"cause={cause}")
        cause = cause.__cause__
    return " ".join(segments)


def error_to_payload(error: URError) -> dict[str, Any]:
    """Convert a URError to a status payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
