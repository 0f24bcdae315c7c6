"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from sentry_sdk.integrations.fastapi import FastApiIntegration

from selfcare_bot.api import account_linking, health, webhook
from selfcare_bot.config import get_settings
from selfcare_bot.constants import GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS
from selfcare_bot.logging_config import setup_logfire
from selfcare_bot.services.delivery import drain_pending_tasks, pending_task_count

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager with graceful shutdown support."""
    # Startup
    settings = get_settings()

    # Initialize Logfire for observability
    setup_logfire(app)

    # Initialize Sentry if DSN is provided
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            environment=settings.env,
            integrations=[FastApiIntegration()],
        )

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        server_url=settings.public_base_url,
        graph_api_version=settings.graph_api_version,
    )

    yield

    # Graceful shutdown: let in-flight deliveries finish
    logfire.info(
        "Application shutdown initiated",
        pending_deliveries=pending_task_count(),
    )
    await drain_pending_tasks(GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS)
    logfire.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Messenger Self-Care Bot",
    description="Facebook Messenger bot for carrier self-care flows",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Register routers
app.include_router(health.router, tags=["health"])
app.include_router(webhook.router, prefix="/webhook", tags=["webhook"])
app.include_router(account_linking.router, tags=["account-linking"])


@app.get("/")
def root():
    """Root endpoint."""
    settings = get_settings()
    return {
        "message": "Messenger Self-Care Bot API",
        "environment": settings.env,
        "version": APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 5000))
    uvicorn.run(
        "selfcare_bot.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "local",
    )
