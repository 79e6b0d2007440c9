"""GitHub webhook HTTP endpoint."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from deploy_hook.config import Settings, get_settings
from deploy_hook.deploy.workflow_run import workflow_run_handler
from deploy_hook.errors import WebhookError
from deploy_hook.logs import capture_logs
from deploy_hook.webhook.dispatcher import WebhookDispatcher
from deploy_hook.webhook.notification import Notification, RequestContext
from deploy_hook.webhook.response import Response

logger = logging.getLogger(__name__)
router = APIRouter()


def build_dispatcher(settings: Settings) -> WebhookDispatcher:
    """Create the dispatcher for one request, with the configured handlers."""
    return WebhookDispatcher.from_settings(
        settings,
        handlers={"workflow_run": workflow_run_handler(settings)},
    )


def handle_notification(notification: Notification, settings: Settings) -> Response:
    """Run a notification through the dispatcher and return its response."""
    dispatcher = build_dispatcher(settings)
    return dispatcher.handle(notification).response


def error_response(error: Exception, logs: list[dict]) -> Response:
    """Turn an exception raised while handling into an error response."""
    if isinstance(error, WebhookError):
        code, http_code = error.code, error.http_code
    else:
        code, http_code = 1, 500

    return Response(
        {
            "code": code,
            "http_code": http_code,
            "data": {"message": str(error) or type(error).__name__, "logs": list(logs)},
        }
    )


@router.api_route("/github", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def github_webhook(request: Request) -> JSONResponse:
    """
    Handle incoming GitHub webhooks.

    Validates the notification, dispatches it by event and replies with the
    handler's response. Any failure is reported as an error response.
    """
    settings = get_settings()

    # Read raw body for signature validation
    body = await request.body()

    context = RequestContext(
        method=request.method,
        headers=dict(request.headers),
        query=dict(request.query_params),
    )
    notification = Notification(body, context=context)

    with capture_logs() as logs:
        try:
            response = await run_in_threadpool(handle_notification, notification, settings)
        except WebhookError as e:
            logger.warning(f"Rejected {notification!r}: {e}")
            response = error_response(e, logs)
        except Exception as e:
            logger.exception(f"Failed to handle {notification!r}: {e}")
            response = error_response(e, logs)

    return JSONResponse(status_code=response.http_code, content=response.to_dict())
