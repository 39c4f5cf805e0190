"""HTTP entry point for the review service.

The Figma plugin posts screens to ``/`` (or ``/api/analyze``) and gets back one
result per screen. Batch-level precondition failures come back as
``{success: false, error}`` with status 500, which is the shape the plugin
already handles.
"""

import secrets

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ux_review.config import settings
from ux_review.errors import PreconditionError
from ux_review.logging import RequestLoggingMiddleware, setup_logging
from ux_review.models.response import ErrorResponse
from ux_review.routers.analyze import router as analyze_router

setup_logging(settings.log_level, settings.log_json)

app = FastAPI(title="UX Review")


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Require X-API-Key on analysis and provider routes.

    /health and CORS preflight from the plugin iframe stay open. Disabled when
    settings.api_key is empty. Comparison is timing-safe.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.api_key:
            return await call_next(request)

        if request.method == "OPTIONS" or request.url.path == "/health":
            return await call_next(request)

        provided_key = request.headers.get("X-API-Key", "")
        if not provided_key or not secrets.compare_digest(provided_key, settings.api_key):
            client_ip = request.client.host if request.client else "unknown"
            logger.warning("Invalid or missing API key from {client_ip}", client_ip=client_ip)
            return JSONResponse(status_code=401, content={"detail": "Invalid or missing API key"})

        return await call_next(request)


app.add_middleware(
    CORSMiddleware,  # ty: ignore[invalid-argument-type]  # Starlette ParamSpec typing limitation
    allow_origins=["*"],  # Figma plugin iframes send Origin: null
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(APIKeyMiddleware)  # ty: ignore[invalid-argument-type]  # same Starlette issue
app.add_middleware(RequestLoggingMiddleware)  # ty: ignore[invalid-argument-type]  # same Starlette issue

app.include_router(analyze_router)


@app.exception_handler(PreconditionError)
async def precondition_failed(request: Request, exc: PreconditionError) -> JSONResponse:
    logger.warning("Batch rejected before start: {error}", error=str(exc))
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())


@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "auth_required": bool(settings.api_key),
        "figma_configured": bool(settings.figma_access_token),
    }


def run() -> None:
    import uvicorn

    uvicorn.run("ux_review.main:app", host=settings.host, port=settings.port, log_config=None)
