"""FastAPI application factory.

Creates the FastAPI app with:
- CORS middleware (open for dev, restrictable for prod)
- REST routes under /api
- Domain exception → HTTP status mapping
- Lifespan management (logging setup, service container)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from moriarty import __version__
from moriarty.api.routes import get_services, router
from moriarty.api.services import DashboardServices
from moriarty.core import (
    CollaboratorError,
    InvalidInputError,
    MoriartyError,
    NotFoundError,
    Settings,
    get_logger,
    get_settings,
    setup_logging,
)

logger = get_logger(__name__)


def _error_response(status_code: int, exc: MoriartyError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "details": exc.details},
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[DashboardServices] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional Settings override (for testing)
        services: Optional prebuilt service container (for testing)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage app startup and shutdown."""
        setup_logging(log_level=settings.log_level, log_format=settings.log_format)

        if getattr(app.state, "services", None) is None:
            app.state.services = DashboardServices.build(settings=settings)

        logger.info("api_server_starting", version=app.version, llm_provider=settings.llm_provider)
        yield
        logger.info("api_server_stopped")

    app = FastAPI(
        title="CyberMoriarty",
        description=(
            "Vulnerability intelligence dashboard: search the CVE catalog, "
            "run AI risk assessments and assemble reports."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS - open for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _get_services() -> DashboardServices:
        if app.state.services is None:
            raise RuntimeError("App not started. DashboardServices is not available.")
        return app.state.services

    app.dependency_overrides[get_services] = _get_services

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return _error_response(400, exc)

    @app.exception_handler(CollaboratorError)
    async def collaborator_handler(request: Request, exc: CollaboratorError):
        logger.warning("collaborator_error", path=request.url.path, error=exc.message)
        return _error_response(502, exc)

    app.include_router(router, prefix="/api")

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the server directly (for development).

    Usage:
        python -m moriarty.api.app
        # or
        moriarty serve
    """
    import uvicorn

    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(app, host=host or settings.api_host, port=port or settings.api_port, log_level="info")


if __name__ == "__main__":
    run_server()
