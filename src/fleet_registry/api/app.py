"""
FastAPI Application Setup.

HTTP gateway in front of the deployed registries. It is the far end of
HttpDispatcher: every registry entry point is reachable through one invoke
route per namespace.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fleet_registry import __version__
from fleet_registry.api.schemas import HealthResponse, InvokeReply, InvokeRequest
from fleet_registry.config import FleetSettings, configure_logging
from fleet_registry.fleet import Fleet

logger = logging.getLogger(__name__)


def create_app(fleet: Fleet | None = None, title: str = "Fleet Registry Gateway") -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        fleet: Deployed registries to serve (built from the environment if None)
        title: Application title for OpenAPI docs

    Returns:
        Configured FastAPI application instance
    """
    if fleet is None:
        settings = FleetSettings.from_env()
        configure_logging(settings.log_level)
        fleet = Fleet(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(f"Fleet Registry gateway starting up (version {__version__})")
        yield
        logger.info("Fleet Registry gateway shutting down...")
        fleet.close()

    app = FastAPI(
        title=title,
        description="Gateway to the inventory, resources and latency registries",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.fleet = fleet

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, object]:
        """Root endpoint with gateway information."""
        return {
            "name": "Fleet Registry Gateway",
            "version": __version__,
            "namespace": fleet.settings.namespace,
            "health": "/health",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        """Report the deployed registries."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            namespace=fleet.settings.namespace,
            backend=fleet.settings.backend.value,
            registries=fleet.dispatcher.deployments(),
        )

    @app.post(
        "/channels/{namespace}/registries/{target}/invoke",
        response_model=InvokeReply,
        tags=["Registries"],
    )
    def invoke(namespace: str, target: str, body: InvokeRequest) -> JSONResponse:
        """
        Run a transaction on a deployed registry.

        The HTTP status mirrors the registry response status.
        """
        operation, *args = body.args
        response = fleet.dispatcher.dispatch(
            fleet.resolve(target),
            [operation.encode("utf-8"), *(arg.encode("utf-8") for arg in args)],
            namespace,
        )
        logger.debug(f"{target}.{operation} -> {response.status}")
        reply = InvokeReply.from_response(response)
        return JSONResponse(status_code=reply.status, content=reply.model_dump())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "status": 500,
                "payload": "",
                "message": "An unexpected error occurred",
            },
        )

    return app
