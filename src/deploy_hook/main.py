"""FastAPI application entry point."""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from deploy_hook import __version__, logs
from deploy_hook.config import get_settings
from deploy_hook.webhook.handler import router as webhook_router

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logs.install()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info(f"Deploy Hook starting up, deploy mode {settings.deploy_mode}")
    yield
    logger.info("Deploy Hook shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Deploy Hook",
        description="GitHub webhook receiver that deploys sites after successful CI runs",
        version=__version__,
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(webhook_router, prefix="/webhook", tags=["webhook"])

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Deploy Hook - deploy sites from GitHub webhooks")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the webhook server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command == "serve":
        settings = get_settings()
        setup_logging(settings.log_level)
        uvicorn.run(
            "deploy_hook.main:app",
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    cli()
