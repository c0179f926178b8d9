"""Transport to the Unraid GraphQL API and control-action dispatch."""

from ur_client.api import ControlDispatcher, UnraidGraphQLClient

__all__ = ["ControlDispatcher", "UnraidGraphQLClient"]
