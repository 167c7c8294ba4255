"""
middleware.py — HTTP middleware for the Order Relay

    • Security headers on every response
    • One access log line per request (client, method, path, status, duration)
"""

import logging
import time

from fastapi import FastAPI, Request

log = logging.getLogger("order_relay.access")

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
}


def install_middleware(app: FastAPI):
    """Registers the security header and access log middleware on `app`."""

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # Registered last so it wraps the header middleware and sees the final status.
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        client = request.client.host if request.client else "-"
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            log.error(f'{client} "{request.method} {request.url.path}" failed after {elapsed_ms:.1f} ms')
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.info(f'{client} "{request.method} {request.url.path}" {response.status_code} {elapsed_ms:.1f} ms')
        return response
