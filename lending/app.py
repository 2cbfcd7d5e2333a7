"""FastAPI app for the lending service.

Exposes:
- POST /api/register, POST /api/login
- GET/POST /api/books, GET /api/categories
- POST /api/borrow, POST /api/return, GET /api/borrowed
- GET /api/health
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api import router as api_router

from .config import LendingConfig
from .errors import LendingError
from .logging_config import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log the first client connection with its full URL."""

    async def dispatch(self, request, call_next):
        if not getattr(request.app.state, "logged_first_request", False):
            request_logger = logging.getLogger("lending.request")
            user_agent = request.headers.get("user-agent", "")
            client_name = user_agent.split("/")[0] if user_agent else "unknown"
            client_ip = request.client.host if request.client else "unknown"
            request_logger.info(
                'client_connected="%s" ip="%s" url="%s %s"'
                % (client_name, client_ip, request.method, str(request.url))
            )
            request.app.state.logged_first_request = True
        return await call_next(request)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    # uvicorn reports the process start itself; only add where the API lives
    api_url = getattr(app.state, "api_url", None)
    if api_url:
        logger.info("Lending API available at: " + api_url)
    yield


app = FastAPI(title="Book Lending System", lifespan=_lifespan)
app.add_middleware(RequestLoggingMiddleware)
app.include_router(api_router, prefix="/api")


@app.exception_handler(LendingError)
async def _lending_error_handler(request: Request, exc: LendingError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse({"message": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"message": "Invalid request body"}, status_code=400)


@app.exception_handler(Exception)
async def _unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"message": "Server error"}, status_code=500)


class _AccessFilter(logging.Filter):
    """Hide access log lines for successful requests; keep 4xx/5xx visible."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except Exception:
            return True
        return not any(
            pattern in msg for pattern in (" 200 OK", " 201 Created", '" 200', '" 201')
        )


def run_server(
    config: LendingConfig,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> None:
    """Run the FastAPI app with Uvicorn."""
    import uvicorn

    effective_host = host or config.server_host
    effective_port = port or config.server_port
    app.state.api_url = f"http://localhost:{effective_port}/api"

    logging.getLogger("uvicorn.access").addFilter(_AccessFilter())

    uvicorn.run(
        app,
        host=effective_host,
        port=effective_port,
        log_level="info",
        log_config=None,
    )
