"""Tests for environment parsing helpers."""

from __future__ import annotations

import pytest

from ur_common.config import parse_bool_env, parse_list_env


pytestmark = pytest.mark.unit_common


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("TRUE", True), (" yes ", True), ("on", True), ("0", False), ("no", False), (None, None)],
)
def test_parse_bool_env(raw, expected) -> None:
    assert parse_bool_env(raw) is expected


def test_parse_list_env_skips_blank_tokens() -> None:
    assert parse_list_env("info.time, ,metrics.cpu,") == ["info.time", "metrics.cpu"]
    assert parse_list_env(None) is None
