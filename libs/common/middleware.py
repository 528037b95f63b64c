"""HTTP middleware: request tracing and the access gate.

Usage:
    from libs.common.middleware import add_access_gate, add_observability_middleware

    app = FastAPI()
    add_access_gate(app)
    add_observability_middleware(app)
"""

import hmac
import re
import time
from typing import Callable, Iterable, Optional, Pattern

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from libs.common.errors import ApiError, UnauthorizedError, error_response
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-api-key",
}

PUBLIC_ROUTES = (
    r"/",
    r"/health",
    r"/api/products(.*)",
    r"/api/categories(.*)",
    r"/api/carousel(.*)",
    r"/api/webhooks(.*)",
)


def compile_routes(patterns: Iterable[str]) -> list[Pattern[str]]:
    return [re.compile(f"^{pattern}$") for pattern in patterns]


def is_public_path(path: str, routes: Iterable[Pattern[str]]) -> bool:
    return any(route.match(path) for route in routes)


def api_key_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AccessGateMiddleware(BaseHTTPMiddleware):
    """
    Runs before every route:

    - OPTIONS requests are answered immediately with 204.
    - A matching ``x-api-key`` header admits the request unconditionally.
    - Otherwise protected routes need a valid Clerk session token.

    The resolved caller (or None) is stored on ``request.state.auth_user`` and
    CORS headers are attached to every response, error responses included.
    """

    def __init__(self, app: ASGIApp, public_routes: Iterable[str] = PUBLIC_ROUTES):
        super().__init__(app)
        self.public_routes = compile_routes(public_routes)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)

        try:
            response = await self._admit(request, call_next)
        except Exception as exc:
            response = error_response(exc)

        response.headers.update(CORS_HEADERS)
        return response

    async def _admit(self, request: Request, call_next: Callable) -> Response:
        settings = request.app.state.settings
        identity = request.app.state.identity
        request.state.auth_user = None

        token = _bearer_token(request)
        trusted = api_key_matches(
            request.headers.get(API_KEY_HEADER), settings.API_SECRET_KEY
        )
        public = is_public_path(request.url.path, self.public_routes)

        if token:
            try:
                request.state.auth_user = await identity.verify_session(token)
            except ApiError:
                if not (trusted or public):
                    raise
        elif not (trusted or public):
            raise UnauthorizedError()

        return await call_next(request)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Sets request context for tracing and logs request lifecycle.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )

        start_time = time.perf_counter()

        if request.url.path != "/health":
            logger.info(
                "Request started",
                extra={"extra_fields": {"query": str(request.url.query) or None}},
            )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000

            if request.url.path != "/health":
                log_level = "warning" if response.status_code >= 400 else "info"
                getattr(logger, log_level)(
                    "Request completed",
                    extra={"extra_fields": {
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }},
                )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed with unhandled exception",
                extra={"extra_fields": {
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                }},
            )
            raise

        finally:
            clear_request_context()


def add_access_gate(app: FastAPI, public_routes: Iterable[str] = PUBLIC_ROUTES) -> None:
    app.add_middleware(AccessGateMiddleware, public_routes=public_routes)


def add_observability_middleware(app: FastAPI) -> None:
    """
    Configure logging and add request tracing. Call after ``add_access_gate``
    so tracing wraps the gate.
    """
    configure_logging(app.state.settings)
    app.add_middleware(RequestContextMiddleware)
    logger.info("Observability middleware initialized")
