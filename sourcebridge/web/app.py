"""FastAPI application factory and setup."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi.applications import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from sourcebridge import __version__, config, log
from sourcebridge.exceptions import (
    InvalidRequestError,
    ResolutionFailure,
    SourceBridgeError,
)
from sourcebridge.web.routes import router
from sourcebridge.web.state import get_app_state

__all__ = ["create_app"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan context manager.

    Args:
        app (FastAPI): The FastAPI application instance.

    Returns:
        AsyncGenerator: The application lifespan context manager.
    """
    state = get_app_state()
    orchestrator = state.ensure_orchestrator()
    log.info(
        f"Web: Resolver ready in {orchestrator.mode} mode with providers "
        f"$${orchestrator.provider_order()}$$"
    )
    if config.tmdb.api_key is None:
        log.warning("Web: No TMDB API key configured; resolution requests will fail")
    try:
        yield
    finally:
        await state.shutdown()


def create_app() -> FastAPI:
    """Create the FastAPI application.

    Returns:
        FastAPI: The created FastAPI application.
    """
    app = FastAPI(title="SourceBridge", lifespan=lifespan, version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_methods=config.web.cors_methods,
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed query parameters as a 400 in the domain error shape.

        Args:
            request (Request): The incoming HTTP request.
            exc (RequestValidationError): The validation failure.

        Returns:
            JSONResponse: Structured JSON response with error details.
        """
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        payload = {
            "error": InvalidRequestError.__name__,
            "detail": problems or "Invalid request",
            "path": request.url.path,
        }
        return JSONResponse(status_code=InvalidRequestError.status_code, content=payload)

    @app.exception_handler(SourceBridgeError)
    async def domain_exception_handler(
        request: Request, exc: SourceBridgeError
    ) -> JSONResponse:
        """Handle SourceBridge errors with structured JSON responses.

        Args:
            request (Request): The incoming HTTP request.
            exc (SourceBridgeError): The exception instance.

        Returns:
            JSONResponse: Structured JSON response with error details.
        """
        cls = exc.__class__
        payload: dict = {
            "error": cls.__name__,
            "detail": str(exc) or cls.__doc__ or "",
            "path": request.url.path,
        }
        if isinstance(exc, ResolutionFailure):
            payload["attempts"] = [attempt.to_dict() for attempt in exc.attempts]
        return JSONResponse(status_code=cls.status_code, content=payload)

    return app
