"""Webhook handling for GitHub events."""

from deploy_hook.webhook.dispatcher import WebhookDispatcher
from deploy_hook.webhook.notification import Notification, RequestContext
from deploy_hook.webhook.response import Response
from deploy_hook.webhook.validator import sign_payload

__all__ = ["Notification", "RequestContext", "Response", "WebhookDispatcher", "sign_payload"]
