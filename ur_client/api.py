"""Public API surface for ur_client."""

from ur_client.controls import ControlDispatcher, MutationTransport
from ur_client.graphql_client import (
    GraphQLHttpError,
    GraphQLRequestError,
    GraphQLResponseError,
    UnraidGraphQLClient,
)
from ur_client.mutations import CONTROL_MUTATIONS, mutation_for

__all__ = [
    "CONTROL_MUTATIONS",
    "ControlDispatcher",
    "GraphQLHttpError",
    "GraphQLRequestError",
    "GraphQLResponseError",
    "MutationTransport",
    "UnraidGraphQLClient",
    "mutation_for",
]
