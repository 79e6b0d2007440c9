"""Validation and event dispatch for GitHub webhook notifications."""

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from deploy_hook.errors import (
    ConfigError,
    InvalidMethodError,
    InvalidSignatureError,
    InvalidTokenError,
    MissingEventError,
    MissingSignatureError,
)
from deploy_hook.webhook.notification import EVENT, HASH_ID, REQUEST_METHOD, SIGNATURE, Notification
from deploy_hook.webhook.validator import check_algorithm, sign_payload, signatures_match

if TYPE_CHECKING:
    from deploy_hook.config import Settings

logger = logging.getLogger(__name__)

EventHandler = Callable[[Notification], Any]

DEFAULT_EVENT = "default"

KNOWN_EVENTS = frozenset(
    {
        "dependabot_alert",
        "fork",
        "marketplace_purchase",
        "page_build",
        "ping",
        "pull_request",
        "push",
        "release",
        "star",
        "status",
        "watch",
        "workflow_run",
    }
)


class WebhookDispatcher:
    """
    Validates notifications and routes them to per-event handlers.

    A handler is any callable taking the notification; it is expected to call
    ``notification.set_response``. Events without a registered handler fall
    back to the ``"default"`` handler, or to a built-in message.
    """

    def __init__(
        self,
        secret: str | None,
        hash_id: str | None = None,
        handlers: Mapping[str, EventHandler] | None = None,
    ) -> None:
        if not secret:
            raise ConfigError(
                "Webhook secret is not set. Set GITHUB_WEBHOOK_SECRET or provide it explicitly."
            )

        self._secret = secret
        self._hash_id = hash_id
        self._handlers: dict[str, EventHandler] = {}

        for event, handler in (handlers or {}).items():
            self.add_handler(event, handler)

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        handlers: Mapping[str, EventHandler] | None = None,
    ) -> "WebhookDispatcher":
        return cls(
            settings.github_webhook_secret,
            hash_id=settings.github_webhook_hash_id,
            handlers=handlers,
        )

    @property
    def handlers(self) -> dict[str, EventHandler]:
        return dict(self._handlers)

    def add_handler(self, event: str, handler: EventHandler) -> "WebhookDispatcher":
        """Register the handler for an event, replacing any previous one."""
        self._handlers[event] = handler
        return self

    def handle(self, notification: Notification) -> Notification:
        """Validate the notification, then dispatch it."""
        self.validate(notification)
        self.dispatch(notification)
        return notification

    def validate(self, notification: Notification) -> None:
        """
        Validate a notification before dispatch.

        Checks run in a fixed order and the first failure is raised: hash ID,
        request method, event, signature presence, then the signature itself.
        Only the last check depends on the secret.

        Raises:
            ValidationError: A subclass naming the failed check
        """
        meta = notification.meta

        if self._hash_id and meta[HASH_ID] != self._hash_id:
            logger.warning("Rejected notification with invalid hash ID")
            raise InvalidTokenError("Invalid hash ID (hash_id).")

        method = meta[REQUEST_METHOD]
        if method != "POST":
            logger.warning(f"Rejected {method} request")
            raise InvalidMethodError(f"Invalid request method {method}, only POST is allowed.")

        if not meta[EVENT]:
            raise MissingEventError("Missing GitHub event (X-GitHub-Event).")

        signature = meta[SIGNATURE]
        if not signature:
            raise MissingSignatureError("Missing GitHub signature (X-Hub-Signature-256).")

        check_algorithm(signature)
        expected = sign_payload(notification.body, self._secret)
        if not signatures_match(expected, signature):
            raise InvalidSignatureError("Invalid GitHub signature (X-Hub-Signature-256).")

        logger.debug(f"Validated {notification!r}")

    def dispatch(self, notification: Notification) -> None:
        """Route a validated notification to the handler for its event."""
        event = notification.event

        if event not in KNOWN_EVENTS:
            self._handle_default(notification)
            return

        handler = self._handlers.get(event)
        if handler is not None:
            logger.info(f"Dispatching {event} event to its handler")
            handler(notification)
        elif event == "ping":
            self._handle_ping(notification)
        else:
            self._handle_default(notification)

    def _handle_ping(self, notification: Notification) -> None:
        full_name = notification.get("repository", "full_name")
        notification.set_response(f"Ping from {full_name} received.")

    def _handle_default(self, notification: Notification) -> None:
        handler = self._handlers.get(DEFAULT_EVENT)
        if handler is not None:
            logger.info(f"Dispatching {notification.event} event to the default handler")
            handler(notification)
            return

        logger.info(f"No handler for {notification.event} event")
        notification.set_response(
            f'Unhandled event "{notification.event}" received, no handler is set.'
        )
