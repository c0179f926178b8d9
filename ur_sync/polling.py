"""Periodic poll loop: compose, fetch, hand the payload over, reschedule."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Mapping, Protocol, Sequence

from ur_common.errors import SyncCycleError, TransportError, URError, describe_error
from ur_common.logging import truncate_for_log
from ur_sync.domains.models import DomainDefinition
from ur_sync.query_builder import build_query

logger = logging.getLogger(__name__)


class QueryTransport(Protocol):
    def query(self, query: str) -> Mapping[str, Any]: ...


class PollingDriver:
    """Runs one cycle at a time on a background thread.

    ``stop`` prevents further scheduled cycles without interrupting one in
    flight. ``poll_now`` runs an extra cycle on its own thread, independent
    of the schedule.
    """

    def __init__(
        self,
        transport: QueryTransport,
        definitions_provider: Callable[[], Sequence[DomainDefinition]],
        on_payload: Callable[[Mapping[str, Any]], Any],
        interval_seconds: float = 60.0,
        name: str = "unraid-sync",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.transport = transport
        self.definitions_provider = definitions_provider
        self.on_payload = on_payload
        self.interval_seconds = interval_seconds
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._errors: list[URError] = []
        self._errors_lock = threading.Lock()
        self._cycles = 0
        self.last_success: datetime | None = None

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def cycles(self) -> int:
        return self._cycles

    def start(self) -> None:
        """Run the first cycle immediately, then every ``interval_seconds``."""
        if self._stop_event.is_set():
            logger.warning("%s poller was stopped and cannot be restarted", self.name)
            return
        if self.is_running:
            logger.warning("%s poller is already running", self.name)
            return
        self._thread = threading.Thread(
            target=self._loop, name=f"{self.name}-poller", daemon=True
        )
        self._thread.start()
        logger.info("%s poller started (interval %ss)", self.name, self.interval_seconds)

    def stop(self, wait: bool = True, timeout: float | None = None) -> None:
        """Stop scheduling; optionally wait for an in-flight cycle to finish."""
        self._stop_event.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("%s poller stopped", self.name)

    def poll_now(self) -> threading.Thread | None:
        """Fire-and-forget extra cycle, e.g. after a control action."""
        if self._stop_event.is_set():
            logger.debug("Ignoring manual poll, %s poller is stopped", self.name)
            return None
        thread = threading.Thread(
            target=self._manual_cycle, name=f"{self.name}-manual-poll", daemon=True
        )
        thread.start()
        return thread

    def run_once(self) -> bool:
        """Execute one full cycle; returns True when the payload was applied."""
        definitions = list(self.definitions_provider())
        if not definitions:
            logger.debug("Skipping poll because no categories are selected")
            return False
        query = build_query(definitions)
        if not query:
            logger.warning("No query could be built for the current selection")
            return False

        try:
            payload = self.transport.query(query)
        except Exception as exc:
            error = (
                exc
                if isinstance(exc, TransportError)
                else TransportError("Query failed", cause=exc)
            )
            self._record(error)
            logger.error("Polling failed: %s", describe_error(error))
            return False
        if not isinstance(payload, Mapping):
            error = TransportError(
                "Unexpected response payload",
                context={"payload_type": type(payload).__name__},
            )
            self._record(error)
            logger.error("Polling failed: %s", describe_error(error))
            return False

        self._log_response(payload)
        try:
            self.on_payload(payload)
        except Exception as exc:
            error = SyncCycleError(
                "Failed to apply response", context={"poller": self.name}, cause=exc
            )
            self._record(error)
            logger.error("Error in %s cycle: %s", self.name, exc, exc_info=True)
            return False
        self._cycles += 1
        self.last_success = datetime.now()
        return True

    def get_errors(self) -> list[URError]:
        """Return errors of failed cycles, oldest first."""
        with self._errors_lock:
            return list(self._errors)

    def clear_errors(self) -> None:
        with self._errors_lock:
            self._errors.clear()

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_once()
            if self._stop_event.wait(self.interval_seconds):
                break

    def _manual_cycle(self) -> None:
        logger.debug("Running manual poll")
        self.run_once()

    def _record(self, error: URError) -> None:
        with self._errors_lock:
            self._errors.append(error)

    @staticmethod
    def _log_response(payload: Mapping[str, Any]) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        try:
            serialized = json.dumps(payload, default=str)
        except (TypeError, ValueError) as exc:
            logger.debug("GraphQL response received but could not be serialized: %s", exc)
            return
        logger.debug("GraphQL response: %s", truncate_for_log(serialized))
