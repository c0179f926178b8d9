"""Dispatch of command-button presses to GraphQL mutations."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, Protocol

from ur_common.errors import ControlActionError, StoreError, describe_error
from ur_client.mutations import mutation_for
from ur_sync.resources.families import COMMANDS_SEGMENT
from ur_sync.store.base import ObjectStore

logger = logging.getLogger(__name__)


class MutationTransport(Protocol):
    def mutate(self, mutation: str, variables: Mapping[str, Any]) -> Mapping[str, Any]: ...


class ControlDispatcher:
    """Turns a pressed command node into the matching mutation.

    The button is reset to False afterwards and ``on_dispatched`` is called
    so the caller can schedule a re-poll.
    """

    def __init__(
        self,
        store: ObjectStore,
        transport: MutationTransport,
        on_dispatched: Callable[[], Any] | None = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.on_dispatched = on_dispatched

    def handle_command(self, node_id: str, value: Any) -> bool:
        """Handle a write to ``node_id``; returns True when a mutation ran.

        False or empty values and ids outside a ``commands`` channel are
        ignored. Failures are logged, the button is still reset.
        """
        if not value:
            return False
        if f".{COMMANDS_SEGMENT}." not in node_id:
            return False

        logger.info("Processing control action for %s", node_id)
        executed = False
        try:
            self.execute(node_id)
            executed = True
        except ControlActionError as exc:
            logger.error("Failed to execute control action: %s", describe_error(exc))
        finally:
            self._reset_button(node_id)

        if self.on_dispatched is not None:
            self.on_dispatched()
        return executed

    def execute(self, node_id: str) -> Mapping[str, Any]:
        node = self.store.get_node(node_id)
        if node is None or not node.metadata.native:
            raise ControlActionError(
                f"No object found for control node {node_id}",
                context={"node_id": node_id},
            )
        native = node.metadata.native
        resource_type = str(native.get("resource_type") or "")
        resource_id = native.get("resource_id")
        action = str(native.get("action") or "")

        mutation = mutation_for(resource_type, action)
        if mutation is None:
            raise ControlActionError(
                f"Unknown action {action!r} for resource type {resource_type!r}",
                context={"node_id": node_id, "resource_type": resource_type, "action": action},
            )

        logger.info("Executing %s for %s %s", action, resource_type, resource_id)
        try:
            result = self.transport.mutate(mutation, {"id": resource_id})
        except Exception as exc:
            raise ControlActionError(
                f"{resource_type} {action} failed",
                context={"node_id": node_id, "resource_id": resource_id},
                cause=exc,
            ) from exc
        logger.debug(
            "%s %s mutation result: %s",
            resource_type,
            action,
            json.dumps(result, default=str),
        )
        return result

    def _reset_button(self, node_id: str) -> None:
        try:
            self.store.write_value(node_id, False)
        except StoreError as exc:
            logger.warning("Failed to reset %s: %s", node_id, describe_error(exc))
