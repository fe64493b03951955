"""HTTP surface for the composition engine."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from compoforge.editor import EditorState
from compoforge.exceptions import (
    CompoforgeError,
    DecodeError,
    EmptyExportError,
    LayerNotFoundError,
    RenderError,
    ServiceConfigurationError,
    ServiceError,
)
from compoforge.services import GeminiImageService, ImageService

from .routes import router

# Most specific first
_STATUS_CODES: list[tuple[type[CompoforgeError], int]] = [
    (LayerNotFoundError, 404),
    (DecodeError, 400),
    (EmptyExportError, 409),
    (ServiceConfigurationError, 503),
    (ServiceError, 502),
    (RenderError, 500),
]


def status_code_for(error: CompoforgeError) -> int:
    for error_type, status in _STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


async def _compoforge_error_handler(request: Request, exc: CompoforgeError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app(
    state: Optional[EditorState] = None,
    service: Optional[ImageService] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        state: Editor state to serve (a fresh one if omitted)
        service: Image service for a fresh state (Gemini if omitted)

    Returns:
        FastAPI app with the composition routes under /api
    """
    app = FastAPI(title="Compoforge", version="0.1.0")
    app.state.editor = state if state is not None else EditorState(service=service or GeminiImageService())
    app.add_exception_handler(CompoforgeError, _compoforge_error_handler)
    app.include_router(router, prefix="/api")
    return app


__all__ = ['create_app', 'status_code_for']
