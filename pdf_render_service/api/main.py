"""
Main application file for the PDF Render Service API.

This file initializes the FastAPI application, sets up logging, configures the
CORS policy, registers the exception handlers that produce the uniform error
envelope, and includes the PDF router.
"""
import asyncio
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from pdf_render_service.api.models import PdfErrorResponse
from pdf_render_service.api.routes import pdf_router
from pdf_render_service.core.config import config_manager, get_port
from pdf_render_service.core.exceptions import OriginNotAllowedError, PdfGenerationError
from pdf_render_service.core.logger import setup_logging, get_logger

# --- Logging Setup ---
try:
    setup_logging(config_manager)
    logger = get_logger(__name__)
except Exception as e:
    import logging as py_logging
    py_logging.basicConfig(level=py_logging.WARNING, format="%(asctime)s - %(levelname)s - CRITICAL - Failed to setup custom logging: %(message)s")
    py_logging.critical(f"Failed to initialize custom logging via ConfigurationManager: {e}", exc_info=True)
    logger = py_logging.getLogger(__name__)


def _log_unhandled_async_fault(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Loop exception handler: faults outside any request are logged, never fatal."""
    exc = context.get("exception")
    logger.error(f"[UNHANDLED ASYNC FAULT] {context.get('message', 'Unhandled exception in event loop')}", exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(_log_unhandled_async_fault)
    logger.info(f"[SERVER] PDF Render Service started (environment: {config_manager.current_environment})")
    yield
    logger.info("[SERVER] PDF Render Service shutting down.")


# --- FastAPI Application Initialization ---
app = FastAPI(
    title="PDF Render Service API",
    description="Converts a web page into a downloadable PDF using a headless Chromium browser.",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS ---
# Only GET is allowed cross-origin. Requests without an Origin header
# (curl, server-to-server) are not affected.
ALLOWED_ORIGINS = config_manager.get("cors.allowed_origins", ["http://localhost:3000"])

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=config_manager.get("cors.allowed_methods", ["GET"]),
)


# --- Error Envelope ---
def should_include_stack() -> bool:
    """Stack traces are exposed to callers only outside production."""
    return bool(config_manager.get("errors.include_stack", not config_manager.is_production))


def build_error_response(message: str, exc: BaseException) -> JSONResponse:
    stack = None
    if should_include_stack():
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    body = PdfErrorResponse(message=message, stack=stack)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )


# Registered after CORSMiddleware, so it runs first: requests from unlisted
# origins never reach a route.
@app.middleware("http")
async def reject_unlisted_origins(request: Request, call_next):
    origin = request.headers.get("origin")
    if origin is not None and origin not in ALLOWED_ORIGINS:
        exc = OriginNotAllowedError(origin)
        logger.warning(f"Rejected request from origin '{origin}': {request.method} {request.url}")
        return build_error_response(exc.message, exc)
    return await call_next(request)


# --- Global Exception Handlers ---
@app.exception_handler(PdfGenerationError)
async def pdf_generation_exception_handler(request: Request, exc: PdfGenerationError):
    """
    Converts every PDF generation failure into the uniform 500 error envelope.

    All failure kinds share the status code: none of them can be fixed by the
    caller retrying differently.
    """
    logger.error(
        f"PdfGenerationError caught: {exc.error_kind} - {exc.message} "
        f"for request: {request.method} {request.url}",
        exc_info=exc.__cause__ is not None,
    )
    return build_error_response(exc.message, exc)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """
    Catch-all for exceptions raised outside the orchestrator, so callers still
    receive the same JSON envelope.
    """
    logger.critical(
        f"Generic unhandled exception caught: {exc.__class__.__name__} - {str(exc)} "
        f"for request: {request.method} {request.url}",
        exc_info=True,
    )
    return build_error_response(str(exc), exc)


# --- API Router Inclusion ---
app.include_router(pdf_router, tags=["PDF Generation"])


# --- Root Endpoint ---
@app.get("/", tags=["General"], summary="Liveness check", response_class=PlainTextResponse)
async def read_root():
    return "Server is running!"


def run_server() -> None:
    """Runs the API with uvicorn on `server.host` and the configured port."""
    import uvicorn

    host = config_manager.get("server.host", "0.0.0.0")
    port = get_port(config_manager)
    logger.info(f"[SERVER] Server running on port {port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
