"""
FastAPI application factory.

The container is built (or injected) per application, started in the
lifespan and closed on shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from onchain_budget import __version__
from onchain_budget.api.errors import budget_exception_handler, request_validation_handler
from onchain_budget.api.routes import create_api_router
from onchain_budget.container import AppContainer
from onchain_budget.utils.errors import BudgetAssistantError
from onchain_budget.utils.logging import get_logger

logger = get_logger(__name__)


def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI app.

    Args:
        container: Prebuilt container (tests); built from the environment
            at startup when omitted

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container or AppContainer.from_env()
        await app.state.container.start()
        try:
            yield
        finally:
            await app.state.container.close()

    app = FastAPI(
        title="OnchainBudget Assistant",
        description="Onchain and bank budgeting assistant API",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BudgetAssistantError, budget_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(create_api_router("/api"))

    @app.get("/api/health", tags=["Health"])
    async def health_check():
        """Liveness plus session store status."""
        store = app.state.container.store
        store_healthy = await store.check_health()
        return {
            "status": "healthy" if store_healthy else "degraded",
            "version": __version__,
            "components": {
                "session_store": {
                    "status": "healthy" if store_healthy else "unavailable",
                    "backend": store.backend,
                },
            },
        }

    @app.get("/metrics", tags=["Monitoring"])
    async def metrics():
        """Prometheus metrics in text exposition format."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    logger.info("Application created", version=__version__)
    return app
