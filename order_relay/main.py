"""
main.py — FastAPI Entry Point for the Order Relay

This module provides the HTTP interface of the order relay. It receives order
notifications from the form/payment provider and hands them to the workflow that
validates, maps and forwards them to the accounting API.

Responsibilities:
    • Accept order webhooks via HTTP API (POST /webhook)
    • Provide system health information (GET /webhook)
    • Enforce the request body size limit
    • Own the lifecycle of the downstream HTTP client
    • Install the process-wide safety net when run as `python -m order_relay.main`

Usage:
    python -m order_relay.main
    uvicorn order_relay.main:app --host 0.0.0.0 --port 3000
"""

import asyncio
import os
import sys
import threading
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .clients import AccountingClient
from .config import Settings, get_settings
from .errors import ConfigurationError
from .logging_config import get_logger, setup_logging
from .middleware import install_middleware
from .workflow import handle_order, health_status

log = get_logger(__name__)


def _log_uncaught_exception(exc_type, exc_value, exc_traceback):
    """sys.excepthook: a fault outside any request is fatal for the process."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return
    log.critical("Uncaught exception, terminating process.", exc_info=(exc_type, exc_value, exc_traceback))
    sys.exit(1)


def _log_uncaught_thread_exception(args):
    """threading.excepthook: same policy as the main thread."""
    if issubclass(args.exc_type, SystemExit):
        return
    thread_name = args.thread.name if args.thread else "<unknown>"
    log.critical(
        f"Uncaught exception in thread {thread_name}, terminating process.",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
    )
    os._exit(1)


def _log_unobserved_failure(loop, context):
    """asyncio exception handler: failed tasks nobody awaited are logged, not fatal."""
    exception = context.get("exception")
    log.error(
        f"Unhandled asynchronous failure: {context.get('message', 'no message')}",
        exc_info=exception if isinstance(exception, BaseException) else None,
    )


def install_exception_hooks():
    """Installs the process-wide safety net for faults outside any request context."""
    sys.excepthook = _log_uncaught_exception
    threading.excepthook = _log_uncaught_thread_exception


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages the application lifecycle.

    Startup:
        - Installs the asyncio handler for unobserved task failures
        - Creates the downstream HTTP client
    Shutdown:
        - Closes the downstream HTTP client
    """
    settings = app.state.settings
    asyncio.get_running_loop().set_exception_handler(_log_unobserved_failure)

    log.info(f"Order relay starting in {settings.environment} mode on port {settings.port}...")
    if not settings.api_url:
        log.warning("API_URL is not set. Every order will fail until it is configured.")

    app.state.accounting_client = AccountingClient(settings, transport=app.state.transport)
    try:
        yield
    finally:
        log.info("Order relay shutting down.")
        await app.state.accounting_client.aclose()


def _payload_too_large(limit: int) -> JSONResponse:
    return JSONResponse(status_code=413, content={
        "status": "error",
        "error": "Payload too large",
        "message": f"Request body exceeds {limit} bytes",
    })


def create_app(settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Creates and configures the FastAPI application.

    Args:
        settings (Settings, optional): Configuration. Defaults to the environment.
        transport (httpx.AsyncBaseTransport, optional): Transport for the downstream client.

    Returns:
        FastAPI: The configured application.

    Raises:
        ConfigurationError: If the settings fail validation (e.g. insecure TLS in production).
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    errors = settings.validate()
    if errors:
        for error in errors:
            log.critical(f"Configuration error: {error}")
        raise ConfigurationError(errors)

    app = FastAPI(title="Order Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.transport = transport
    install_middleware(app)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        """Last line of defense for faults outside the webhook workflow."""
        log.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={
            "status": "error",
            "message": "Internal server error",
        })

    # Health Check Endpoint
    @app.get("/webhook")
    def health_check():
        """
        Health check endpoint used by the provider and container orchestrators.

        Returns:
            dict: {"status": "ok", "timestamp": ISO 8601}
        """
        return health_status()

    # API Endpoint: Provider → Order Relay
    @app.post("/webhook")
    async def receive_order(request: Request):
        """
        Receives an order notification and relays it to the accounting API.

        The body is read raw so that malformed JSON and schema violations produce
        the same itemized 400 response instead of the framework default.

        Returns:
            JSONResponse: See `workflow.handle_order` for the possible outcomes,
            plus 413 when the body exceeds MAX_BODY_BYTES.
        """
        limit = settings.max_body_bytes
        declared_length = request.headers.get("content-length", "")
        if declared_length.isdigit() and int(declared_length) > limit:
            log.warning(f"Rejected webhook: declared body of {declared_length} bytes exceeds {limit}.")
            return _payload_too_large(limit)

        chunks = []
        received = 0
        async for chunk in request.stream():
            received += len(chunk)
            if received > limit:
                log.warning(f"Rejected webhook: body passed {limit} bytes while streaming.")
                return _payload_too_large(limit)
            chunks.append(chunk)
        raw = b"".join(chunks)

        result = await handle_order(raw, request.app.state.accounting_client, settings)
        return JSONResponse(status_code=result.status_code, content=result.content)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    install_exception_hooks()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
