"""GitHub webhook notification model."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from deploy_hook.errors import (
    MalformedPayloadError,
    MalformedSignatureError,
    MissingFieldError,
    NoResponseError,
)
from deploy_hook.webhook.response import Response

logger = logging.getLogger(__name__)

# Normalized transport metadata keys
REQUEST_METHOD = "request_method"
EVENT = "event"
DELIVERY_ID = "delivery_id"
SIGNATURE = "signature"
HASH_ID = "hash_id"

META_KEYS = (REQUEST_METHOD, EVENT, DELIVERY_ID, SIGNATURE, HASH_ID)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNATURE_HEADER = "X-Hub-Signature-256"
HASH_ID_PARAM = "hash_id"

_MISSING = object()


@dataclass(frozen=True)
class RequestContext:
    """Snapshot of the inbound request's transport data, taken by the entry point."""

    method: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def to_meta(self) -> dict[str, str | None]:
        return {
            REQUEST_METHOD: self.method.upper() if self.method else None,
            EVENT: self.header(EVENT_HEADER),
            DELIVERY_ID: self.header(DELIVERY_HEADER),
            SIGNATURE: self.header(SIGNATURE_HEADER),
            HASH_ID: self.query.get(HASH_ID_PARAM),
        }


class Notification:
    """
    One inbound webhook delivery.

    Holds the raw body and the normalized transport metadata, both fixed at
    construction. The metadata comes from ``meta`` when given, otherwise from
    ``context``. The JSON payload is parsed on first access and cached. A
    handler stores its result with ``set_response``.
    """

    def __init__(
        self,
        body: bytes | str,
        meta: Mapping[str, str | None] | None = None,
        context: RequestContext | None = None,
    ) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body

        if meta is None:
            meta = context.to_meta() if context is not None else {}
        self._meta: dict[str, str | None] = {key: None for key in META_KEYS}
        self._meta.update(meta)

        self._payload: Any = _MISSING
        self._response: Response | None = None

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def meta(self) -> dict[str, str | None]:
        return dict(self._meta)

    def _require(self, key: str, description: str) -> str:
        value = self._meta.get(key)
        if value is None:
            raise MissingFieldError(f"Missing {description}.")
        return value

    @property
    def request_method(self) -> str:
        return self._require(REQUEST_METHOD, "request method")

    @property
    def event(self) -> str:
        return self._require(EVENT, f"GitHub event ({EVENT_HEADER})")

    @property
    def delivery_id(self) -> str:
        return self._require(DELIVERY_ID, f"GitHub delivery ({DELIVERY_HEADER})")

    @property
    def hash_id(self) -> str | None:
        return self._meta.get(HASH_ID)

    @property
    def signature_header(self) -> str:
        return self._require(SIGNATURE, f"GitHub signature ({SIGNATURE_HEADER})")

    def _signature_parts(self) -> tuple[str, str]:
        algorithm, sep, value = self.signature_header.partition("=")
        if not sep:
            raise MalformedSignatureError(
                f"Malformed GitHub signature ({SIGNATURE_HEADER}), expected algorithm=digest."
            )
        return algorithm, value

    @property
    def signature_algorithm(self) -> str:
        return self._signature_parts()[0]

    @property
    def signature_value(self) -> str:
        return self._signature_parts()[1]

    @property
    def payload(self) -> Any:
        """The body parsed as JSON, parsed once."""
        if self._payload is _MISSING:
            try:
                self._payload = json.loads(self._body)
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise MalformedPayloadError(f"Malformed JSON payload: {e}") from e
            logger.debug(f"Parsed payload of {len(self._body)} bytes")
        return self._payload

    def get(self, *path: str) -> Any:
        """
        Read a nested payload field.

        Args:
            path: Keys to follow from the payload root

        Returns:
            The value found at the path

        Raises:
            MissingFieldError: If any step of the path is absent
        """
        node = self.payload
        for depth, key in enumerate(path):
            if not isinstance(node, dict) or key not in node:
                dotted = ".".join(path[: depth + 1])
                raise MissingFieldError(f"Missing payload field {dotted}.")
            node = node[key]
        return node

    @property
    def has_response(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Response:
        if self._response is None:
            raise NoResponseError("Notification has no response.")
        return self._response

    def set_response(self, response: Response | str | Mapping[str, Any]) -> "Notification":
        if not isinstance(response, Response):
            response = Response(response)
        self._response = response
        return self

    def __repr__(self) -> str:
        return (
            f"Notification(event={self._meta.get(EVENT)!r}, "
            f"delivery_id={self._meta.get(DELIVERY_ID)!r})"
        )
