"""CLI behavior tests using Typer's CliRunner."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import pytest
import yaml
from typer.testing import CliRunner

import ur_ui.cli as cli
from ur_app.service import SyncService
from ur_sync.store import MemoryObjectStore


pytestmark = pytest.mark.unit_ui

runner = CliRunner()

PAYLOAD = {
    "docker": {"containers": [{"id": "c1", "names": ["/plex"], "state": "RUNNING"}]},
}


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.mutations: list[tuple[str, dict[str, Any]]] = []

    def query(self, query: str) -> Mapping[str, Any]:
        if self.fail:
            raise OSError("connection refused")
        return PAYLOAD

    def mutate(self, mutation: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        self.mutations.append((mutation, dict(variables)))
        return {}


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for var in ("UR_BASE_URL", "UR_API_TOKEN", "UR_ENABLED_DOMAINS", "UR_STORE_PATH"):
        monkeypatch.delenv(var, raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "base_url": "http://tower",
                "api_token": "top-secret",
                "enabled_domains": ["docker.containers"],
            }
        )
    )
    return path


@pytest.fixture
def fake_service(monkeypatch: pytest.MonkeyPatch):
    created: list[SyncService] = []

    def _install(transport: FakeTransport) -> list[SyncService]:
        def factory(settings):
            service = SyncService(settings, store=MemoryObjectStore(), transport=transport)
            created.append(service)
            return service

        monkeypatch.setattr(cli, "SyncService", factory)
        return created

    return _install


def test_domains_lists_catalog() -> None:
    result = runner.invoke(cli.app, ["domains"])
    assert result.exit_code == 0
    assert "docker.containers" in result.output
    assert "array.status" in result.output


def test_query_prints_composed_query() -> None:
    result = runner.invoke(cli.app, ["query", "-d", "info.time", "-d", "info.os"])
    assert result.exit_code == 0
    assert result.output.startswith("query UnraidAdapterFetch {")
    assert "distro" in result.output
    assert "metrics" not in result.output


def test_query_without_domains_uses_defaults() -> None:
    result = runner.invoke(cli.app, ["query"])
    assert result.exit_code == 0
    assert "cpus {" in result.output


def test_once_runs_a_cycle(config_file: Path, fake_service) -> None:
    created = fake_service(FakeTransport())
    result = runner.invoke(cli.app, ["once", "-c", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Tracked objects" in result.output
    store = created[0].store
    assert store.get_value("docker.containers.plex.state") == "RUNNING"


def test_once_reports_transport_failures(config_file: Path, fake_service) -> None:
    fake_service(FakeTransport(fail=True))
    result = runner.invoke(cli.app, ["once", "-c", str(config_file)])
    assert result.exit_code == 1
    assert "connection refused" in result.output


def test_once_with_invalid_config_fails(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"base_url": "tower"}))
    result = runner.invoke(cli.app, ["once", "-c", str(path)])
    assert result.exit_code == 1
    assert "Invalid settings" in result.output


def test_press_dispatches_control_action(config_file: Path, fake_service) -> None:
    transport = FakeTransport()
    fake_service(transport)
    result = runner.invoke(
        cli.app, ["press", "docker.containers.plex.commands.start", "-c", str(config_file)]
    )

    assert result.exit_code == 0, result.output
    assert transport.mutations[0][1] == {"id": "c1"}
    assert "Executed" in result.output


def test_press_unknown_node_fails(config_file: Path, fake_service) -> None:
    transport = FakeTransport()
    fake_service(transport)
    result = runner.invoke(
        cli.app, ["press", "docker.containers.ghost.commands.start", "-c", str(config_file)]
    )
    assert result.exit_code == 1
    assert transport.mutations == []


def test_config_init_writes_template(tmp_path: Path) -> None:
    target = tmp_path / "conf" / "config.yaml"
    result = runner.invoke(cli.app, ["config", "init", "-p", str(target)])
    assert result.exit_code == 0
    data = yaml.safe_load(target.read_text())
    assert data["api_token"] == "CHANGE_ME"
    assert "info.time" in data["enabled_domains"]

    again = runner.invoke(cli.app, ["config", "init", "-p", str(target)])
    assert again.exit_code == 1

    forced = runner.invoke(cli.app, ["config", "init", "-p", str(target), "--force"])
    assert forced.exit_code == 0


def test_config_show_masks_token(config_file: Path) -> None:
    result = runner.invoke(cli.app, ["config", "show", "-c", str(config_file)])
    assert result.exit_code == 0
    assert "top-secret" not in result.output
    assert "***" in result.output
