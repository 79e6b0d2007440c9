"""Tests for notification validation and dispatch."""

import json
from unittest.mock import Mock

import pytest

from deploy_hook.errors import (
    ConfigError,
    InvalidMethodError,
    InvalidSignatureError,
    InvalidTokenError,
    MalformedSignatureError,
    MissingEventError,
    MissingSignatureError,
    NoResponseError,
    ValidationError,
)
from deploy_hook.webhook.dispatcher import KNOWN_EVENTS, WebhookDispatcher
from deploy_hook.webhook.notification import Notification
from deploy_hook.webhook.validator import sign_payload

SECRET = "test-webhook-secret"
BODY = json.dumps({"zen": "Keep it logically awesome.", "repository": {"full_name": "acme/repo"}})


def _notification(
    event: str | None = "ping",
    body: str = BODY,
    method: str | None = "POST",
    signature: str | None = "sign",
    hash_id: str | None = None,
) -> Notification:
    """Build a notification, signed with the test secret by default."""
    if signature == "sign":
        signature = sign_payload(body.encode(), SECRET)
    return Notification(
        body,
        {
            "request_method": method,
            "event": event,
            "delivery_id": "delivery-1",
            "signature": signature,
            "hash_id": hash_id,
        },
    )


def test_requires_secret():
    """Test that a dispatcher cannot be built without a secret."""
    with pytest.raises(ConfigError):
        WebhookDispatcher(None)
    with pytest.raises(ConfigError):
        WebhookDispatcher("")


def test_valid_notification_passes():
    """Test that a correctly signed POST notification validates."""
    WebhookDispatcher(SECRET).validate(_notification())


def test_invalid_hash_id():
    """Test that the hash ID must match when configured."""
    dispatcher = WebhookDispatcher(SECRET, hash_id="token")

    with pytest.raises(InvalidTokenError):
        dispatcher.validate(_notification(hash_id="other"))
    with pytest.raises(InvalidTokenError):
        dispatcher.validate(_notification(hash_id=None))

    dispatcher.validate(_notification(hash_id="token"))


def test_hash_id_ignored_when_not_configured():
    """Test that any hash ID is accepted when none is configured."""
    WebhookDispatcher(SECRET).validate(_notification(hash_id="anything"))


def test_empty_hash_id_disables_check():
    """Test that an empty configured hash ID does not require one on deliveries."""
    WebhookDispatcher(SECRET, hash_id="").validate(_notification(hash_id=None))


@pytest.mark.parametrize("method", ["GET", "PUT", None])
def test_invalid_method(method: str | None):
    """Test that only POST requests are accepted."""
    with pytest.raises(InvalidMethodError):
        WebhookDispatcher(SECRET).validate(_notification(method=method))


@pytest.mark.parametrize("event", [None, ""])
def test_missing_event(event: str | None):
    """Test that the event header is required."""
    with pytest.raises(MissingEventError):
        WebhookDispatcher(SECRET).validate(_notification(event=event))


def test_missing_signature():
    """Test that the signature header is required."""
    with pytest.raises(MissingSignatureError):
        WebhookDispatcher(SECRET).validate(_notification(signature=None))


def test_missing_signature_fails_before_hmac(monkeypatch: pytest.MonkeyPatch):
    """Test that structural checks run before any HMAC is computed."""
    signer = Mock(side_effect=AssertionError("HMAC computed"))
    monkeypatch.setattr("deploy_hook.webhook.dispatcher.sign_payload", signer)

    with pytest.raises(MissingSignatureError):
        WebhookDispatcher(SECRET).validate(_notification(signature=None))

    signer.assert_not_called()


def test_validation_order_first_failure_wins():
    """Test that the hash ID check runs before the method and signature checks."""
    dispatcher = WebhookDispatcher(SECRET, hash_id="token")
    notification = _notification(event=None, method="GET", signature=None, hash_id="bad")

    with pytest.raises(InvalidTokenError):
        dispatcher.validate(notification)

    with pytest.raises(InvalidMethodError):
        WebhookDispatcher(SECRET).validate(notification)


def test_wrong_secret_is_rejected():
    """Test that a signature made with another secret is rejected."""
    signature = sign_payload(BODY.encode(), "another-secret")

    with pytest.raises(InvalidSignatureError):
        WebhookDispatcher(SECRET).validate(_notification(signature=signature))


def test_tampered_body_is_rejected():
    """Test that a body changed after signing is rejected."""
    signature = sign_payload(BODY.encode(), SECRET)
    tampered = BODY.replace("acme", "acmf")

    with pytest.raises(InvalidSignatureError):
        WebhookDispatcher(SECRET).validate(_notification(body=tampered, signature=signature))


def test_other_algorithm_is_rejected_without_hmac(monkeypatch: pytest.MonkeyPatch):
    """Test that a header naming another algorithm is refused outright."""
    signer = Mock(side_effect=AssertionError("HMAC computed"))
    monkeypatch.setattr("deploy_hook.webhook.dispatcher.sign_payload", signer)

    with pytest.raises(InvalidSignatureError):
        WebhookDispatcher(SECRET).validate(_notification(signature="sha1=" + "a" * 40))

    signer.assert_not_called()


def test_malformed_signature_is_a_validation_error():
    """Test that a header without an algorithm prefix is rejected."""
    with pytest.raises(MalformedSignatureError) as excinfo:
        WebhookDispatcher(SECRET).validate(_notification(signature="deadbeef"))

    assert isinstance(excinfo.value, ValidationError)


def test_ping_default_response():
    """Test the built-in ping response."""
    notification = WebhookDispatcher(SECRET).handle(_notification(event="ping"))

    assert notification.response.data == "Ping from acme/repo received."
    assert notification.response.code == 0


@pytest.mark.parametrize("event", sorted(KNOWN_EVENTS - {"ping"}))
def test_known_events_fall_back_to_default(event: str):
    """Test that every known event without a handler gets the default response."""
    notification = WebhookDispatcher(SECRET).handle(_notification(event=event))

    assert notification.response.data == (
        f'Unhandled event "{event}" received, no handler is set.'
    )


def test_known_events_are_complete():
    """Test the enumerated event set."""
    assert len(KNOWN_EVENTS) == 12
    assert "workflow_run" in KNOWN_EVENTS
    assert "default" not in KNOWN_EVENTS


@pytest.mark.parametrize("event", sorted(KNOWN_EVENTS))
def test_default_handler_used_for_unhandled_events(event: str):
    """Test that a registered default handler receives unhandled known events."""
    default = Mock(side_effect=lambda n: n.set_response(f"default saw {n.event}"))
    dispatcher = WebhookDispatcher(SECRET, handlers={"default": default})

    notification = dispatcher.handle(_notification(event=event))

    if event == "ping":
        default.assert_not_called()
        assert notification.response.data == "Ping from acme/repo received."
    else:
        default.assert_called_once_with(notification)
        assert notification.response.data == f"default saw {event}"


def test_unknown_event_uses_default():
    """Test that unrecognized events go to the generic fallback."""
    notification = WebhookDispatcher(SECRET).handle(_notification(event="deployment"))

    assert notification.response.data == (
        'Unhandled event "deployment" received, no handler is set.'
    )


def test_unknown_event_does_not_use_same_named_handler():
    """Test that only enumerated events are routed to their own handler."""
    custom = Mock()
    default = Mock(side_effect=lambda n: n.set_response("default"))
    dispatcher = WebhookDispatcher(SECRET, handlers={"deployment": custom, "default": default})

    notification = dispatcher.handle(_notification(event="deployment"))

    custom.assert_not_called()
    assert notification.response.data == "default"


def test_registered_handler_is_called():
    """Test that a registered handler receives the notification."""
    handler = Mock(side_effect=lambda n: n.set_response("pushed"))
    dispatcher = WebhookDispatcher(SECRET).add_handler("push", handler)

    notification = dispatcher.handle(_notification(event="push"))

    handler.assert_called_once_with(notification)
    assert notification.response.data == "pushed"


def test_registered_ping_handler_overrides_builtin():
    """Test that a ping handler replaces the built-in ping response."""
    dispatcher = WebhookDispatcher(SECRET, handlers={"ping": lambda n: n.set_response("pong")})

    notification = dispatcher.handle(_notification(event="ping"))

    assert notification.response.data == "pong"


def test_later_registration_overwrites():
    """Test that registering twice for an event keeps the last handler."""
    first, second = Mock(), Mock(side_effect=lambda n: n.set_response("second"))
    dispatcher = WebhookDispatcher(SECRET, handlers={"push": first})
    dispatcher.add_handler("push", second)

    dispatcher.handle(_notification(event="push"))

    first.assert_not_called()
    second.assert_called_once()
    assert dispatcher.handlers == {"push": second}


def test_validation_failure_skips_handlers():
    """Test that no handler runs when validation fails."""
    handler = Mock()
    dispatcher = WebhookDispatcher(SECRET, handlers={"push": handler, "default": handler})

    with pytest.raises(InvalidSignatureError):
        dispatcher.handle(_notification(event="push", signature="sha256=" + "0" * 64))

    handler.assert_not_called()


def test_handler_without_response():
    """Test that a handler that sets no response leaves the notification without one."""
    dispatcher = WebhookDispatcher(SECRET, handlers={"push": lambda n: None})

    notification = dispatcher.handle(_notification(event="push"))

    with pytest.raises(NoResponseError):
        notification.response
