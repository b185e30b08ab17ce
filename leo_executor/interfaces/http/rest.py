"""
REST API Interface

FastAPI application serving the executor over HTTP JSON.

Endpoints:
    GET  /         service information
    GET  /health   toolchain availability
    POST /execute  build and run a Leo program
    POST /analyze  static structure of a Leo program
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leo_executor import __version__
from leo_executor.application.dto import (
    AnalyzeRequestDTO,
    AnalyzeResponseDTO,
    ExecuteRequestDTO,
    ExecuteResponseDTO,
    HealthResponseDTO,
)
from leo_executor.domain import services as analyzer
from leo_executor.domain.value_objects import ErrorType
from leo_executor.infrastructure.config import Settings, get_settings
from leo_executor.infrastructure.logging import configure_logging, get_logger
from leo_executor.interfaces.dependencies import ExecutorServices, build_services

logger = get_logger(__name__)


def _setup_error(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    """Error body in the execute response shape."""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "error": message,
            "errorType": ErrorType.SETUP.value,
            "executionTimeMs": 0,
        },
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location or 'body'}: {error.get('msg')}")
    return "Invalid request: " + "; ".join(parts)


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ExecutorServices] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (environment when None)
        services: Pre-built services; built during startup when None

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        On startup: build services if none were injected, probe the toolchain.
        On shutdown: release library worker threads.
        """
        if app.state.services is None:
            app.state.services = build_services(settings)
        services: ExecutorServices = app.state.services

        logger.info(
            "Executor starting",
            version=__version__,
            port=settings.port,
            backend=services.backend.name,
        )
        health = await services.health_cache.refresh()
        if health.available:
            logger.info("Toolchain verified", version=health.version)
        else:
            logger.warning("Toolchain not available", message=health.message)

        yield

        logger.info("Executor shutting down")
        services.backend.shutdown()

    app = FastAPI(
        title="Leo Executor API",
        description="Builds and runs Leo programs in disposable workspaces",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services
    app.state.started_at = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    def get_services() -> ExecutorServices:
        if app.state.services is None:
            app.state.services = build_services(settings)
        return app.state.services

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle malformed request bodies."""
        logger.warning("Request validation failed", errors=str(exc.errors()), path=request.url.path)
        return _setup_error(_format_validation_errors(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle ValueError exceptions."""
        logger.warning("Value error", error=str(exc), path=request.url.path)
        return _setup_error(str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": "error",
                "error": "Executor encountered an unexpected error",
                "errorType": ErrorType.RUNTIME.value,
                "executionTimeMs": 0,
            },
        )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "leo-executor",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "execute": "/execute",
            "analyze": "/analyze",
        }

    @app.get(
        "/health",
        summary="Health check",
        description="Reports whether the Leo toolchain can currently be invoked",
        tags=["health"],
    )
    async def health_check():
        services = get_services()
        health = await services.health_cache.get_status()
        body = HealthResponseDTO.from_domain(
            health,
            backend=services.backend.name,
            active_executions=services.execute_command.get_active_count(),
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK if health.available else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )

    @app.post(
        "/execute",
        summary="Execute a Leo program",
        description="Builds the program in a fresh workspace and runs one transition",
        tags=["execution"],
    )
    async def execute_endpoint(request: ExecuteRequestDTO):
        """
        Execute one transition.

        - Validates the program header and transitions before any process starts
        - Uses analyzer defaults when no inputs are given
        - Always answers with the execution outcome shape
        """
        services = get_services()
        domain_request = request.to_domain(
            default_timeout_ms=services.settings.default_timeout_ms,
            max_timeout_ms=services.settings.max_timeout_ms,
        )
        logger.info(
            "Execution request received",
            execution_id=domain_request.execution_id,
            entry_point=domain_request.entry_point_name,
            input_count=len(domain_request.inputs or ()),
            timeout_ms=domain_request.timeout_ms,
        )

        outcome = await services.execute_command.execute(domain_request)
        body = ExecuteResponseDTO.from_domain(outcome).to_wire()
        if outcome.error_type == ErrorType.SETUP:
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
        return body

    @app.post(
        "/analyze",
        summary="Analyze a Leo program",
        description="Program name, transitions with default inputs, and validation issues",
        tags=["analysis"],
    )
    async def analyze_endpoint(request: AnalyzeRequestDTO):
        program = analyzer.analyze(request.source)
        issues = analyzer.validate(request.source)
        return AnalyzeResponseDTO.from_domain(program, issues).to_wire()

    return app


def main():
    """Main entry point for running the executor."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
