"""GraphQL client for the Unraid API."""

from __future__ import annotations

import json
import logging
import ssl
import time
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib import error, parse, request

from ur_common.errors import TransportError

logger = logging.getLogger(__name__)


def _validate_http_url(url: str, label: str) -> str:
    parsed = parse.urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{label} must be an http(s) URL, got: {url}")
    return url


class GraphQLHttpError(TransportError):
    """The endpoint answered with a non-2xx status."""

    def __init__(
        self,
        status: int,
        body: str,
        json_body: dict[str, Any] | None = None,
    ) -> None:
        suffix = f": {body}" if body else ""
        super().__init__(f"HTTP {status}{suffix}", context={"status": status})
        self.status = status
        self.body = body
        self.json = json_body


class GraphQLRequestError(TransportError):
    """The request could not be executed or returned no data."""


class GraphQLResponseError(TransportError):
    """The response carried a GraphQL ``errors`` array."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        messages = [
            str(item.get("message"))
            for item in errors
            if isinstance(item, Mapping) and item.get("message")
        ]
        super().__init__(
            "; ".join(messages) or "GraphQL response contained errors",
            context={"errors": len(errors)},
        )
        self.errors = errors


@dataclass
class UnraidGraphQLClient:
    """POSTs GraphQL documents to ``<base_url>/graphql`` with retry support.

    Queries retry on 5xx answers and connection errors with exponential
    backoff; mutations are sent once.
    """

    base_url: str
    api_token: str
    timeout_seconds: float = 15.0
    allow_self_signed: bool = False
    max_retries: int = 2
    backoff_base: float = 0.5
    backoff_factor: float = 2.0
    _ssl_context: ssl.SSLContext | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.base_url = _validate_http_url(
            self.base_url.strip().rstrip("/"), "Unraid base_url"
        )
        if self.allow_self_signed and self.endpoint.startswith("https://"):
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            self._ssl_context = context

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/graphql"

    def query(self, query: str) -> dict[str, Any]:
        return self._execute(query, None, retry=True)

    def mutate(self, mutation: str, variables: Mapping[str, Any]) -> dict[str, Any]:
        return self._execute(mutation, variables, retry=False)

    def _execute(
        self,
        document: str,
        variables: Mapping[str, Any] | None,
        *,
        retry: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": document}
        if variables is not None:
            payload["variables"] = dict(variables)
        body = self._request(payload, retries=self.max_retries if retry else 0)
        parsed = self._parse_json(body)
        if parsed is None:
            raise GraphQLRequestError(
                "Response was not a JSON object", context={"endpoint": self.endpoint}
            )
        errors = parsed.get("errors")
        if isinstance(errors, list) and errors:
            raise GraphQLResponseError(errors)
        data = parsed.get("data")
        if not isinstance(data, dict):
            raise GraphQLRequestError(
                "Empty response payload", context={"endpoint": self.endpoint}
            )
        return data

    def _request(self, payload: Mapping[str, Any], retries: int) -> str:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_token:
            headers["x-api-key"] = self.api_token
        data = json.dumps(payload).encode("utf-8")

        for attempt in range(retries + 1):
            try:
                req = request.Request(
                    self.endpoint, data=data, headers=headers, method="POST"
                )
                with request.urlopen(  # nosec B310
                    req, timeout=self.timeout_seconds, context=self._ssl_context
                ) as resp:
                    return resp.read().decode("utf-8")
            except error.HTTPError as exc:
                status = exc.code
                body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
                if status >= 500 and attempt < retries:
                    logger.debug("Unraid API returned %s, retrying", status)
                    self._sleep_backoff(attempt)
                    continue
                raise GraphQLHttpError(status, body.strip(), self._parse_json(body)) from exc
            except (error.URLError, OSError) as exc:
                if attempt < retries:
                    logger.debug("Unraid API request failed (%s), retrying", exc)
                    self._sleep_backoff(attempt)
                    continue
                raise GraphQLRequestError(
                    f"GraphQL request failed: {exc}",
                    context={"endpoint": self.endpoint},
                    cause=exc,
                ) from exc
        raise GraphQLRequestError("GraphQL request failed after retries.")

    @staticmethod
    def _parse_json(body: str) -> dict[str, Any] | None:
        if not body:
            return None
        try:
            parsed = json.loads(body)
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            return None

    def _sleep_backoff(self, attempt: int) -> None:
        delay = self.backoff_base * (self.backoff_factor ** attempt)
        if delay > 0:
            time.sleep(delay)
