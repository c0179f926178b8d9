"""Service wiring the store, the sync engine, the poller and control dispatch."""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Mapping, Protocol

from ur_app.config import SyncSettings
from ur_client.controls import ControlDispatcher, MutationTransport
from ur_client.graphql_client import UnraidGraphQLClient
from ur_common.errors import ControlActionError, StoreError, describe_error, error_to_payload
from ur_sync.engine import CycleReport, SyncEngine
from ur_sync.polling import PollingDriver, QueryTransport
from ur_sync.store.base import ObjectStore
from ur_sync.store.json_store import JsonFileObjectStore
from ur_sync.store.memory import MemoryObjectStore

logger = logging.getLogger(__name__)


class SyncTransport(QueryTransport, MutationTransport, Protocol):
    """Anything able to run both queries and mutations."""


class SyncService:
    """Lifecycle of one synchronized Unraid server.

    Startup order: import the existing store, prune deselected categories,
    create static states, then start polling.
    """

    def __init__(
        self,
        settings: SyncSettings,
        store: ObjectStore | None = None,
        transport: SyncTransport | None = None,
    ) -> None:
        self.settings = settings
        self.store = store if store is not None else self._build_store(settings)
        self.transport = transport if transport is not None else self._build_client(settings)
        self.engine = SyncEngine(self.store, selection=settings.enabled_domains)
        self.last_report: CycleReport | None = None
        self.driver = PollingDriver(
            self.transport,
            self.engine.definitions,
            self._apply_payload,
            interval_seconds=settings.poll_interval_seconds,
        )
        self.dispatcher = ControlDispatcher(
            self.store, self.transport, on_dispatched=self.driver.poll_now
        )
        self._started = False
        self._lock = threading.Lock()

    @staticmethod
    def _build_store(settings: SyncSettings) -> ObjectStore:
        if settings.store_path is not None:
            return JsonFileObjectStore(settings.store_path)
        return MemoryObjectStore()

    @staticmethod
    def _build_client(settings: SyncSettings) -> UnraidGraphQLClient:
        return UnraidGraphQLClient(
            base_url=settings.base_url,
            api_token=settings.api_token,
            timeout_seconds=settings.request_timeout_seconds,
            allow_self_signed=settings.allow_self_signed,
        )

    def prepare(self) -> None:
        """Bring the store in line with the selection without polling."""
        with self._lock:
            if self._started:
                return
            self.engine.initialize()
            removed = self.engine.prune()
            if removed:
                logger.info("Removed %d deselected objects", len(removed))
            created = self.engine.initialize_static_states()
            logger.debug("Prepared %d static states", created)
            self._started = True

    def start(self) -> None:
        self.prepare()
        self.driver.start()

    def run_once(self) -> bool:
        """Prepare if needed and run a single cycle in the calling thread."""
        self.prepare()
        return self.driver.run_once()

    def stop(self) -> None:
        self.driver.stop()
        self.flush()

    def flush(self) -> None:
        try:
            self.store.flush()
        except StoreError as exc:
            logger.error("Failed to persist store: %s", describe_error(exc))

    def update_selection(self, ids: Iterable[str] | None) -> None:
        """Change the selected categories and prune what was deselected."""
        selection = self.engine.set_selection(ids)
        removed = self.engine.prune()
        self.engine.initialize_static_states()
        logger.info(
            "Selection now %s, removed %d objects",
            ", ".join(selection.effective),
            len(removed),
        )

    def poll_now(self) -> None:
        self.driver.poll_now()

    def press(self, node_id: str) -> bool:
        """Simulate a press of a command button."""
        try:
            self.store.write_value(node_id, True)
        except StoreError as exc:
            raise ControlActionError(
                f"Cannot press {node_id}", context={"node_id": node_id}, cause=exc
            ) from exc
        return self.dispatcher.handle_command(node_id, True)

    def statistics(self) -> dict[str, Any]:
        """Tracked-object counts plus polling health."""
        stats = self.engine.statistics()
        errors = self.driver.get_errors()
        stats["cycles"] = self.driver.cycles
        stats["errors"] = len(errors)
        stats["last_error"] = error_to_payload(errors[-1]) if errors else None
        return stats

    def _apply_payload(self, payload: Mapping[str, Any]) -> None:
        self.last_report = self.engine.apply_payload(payload)
