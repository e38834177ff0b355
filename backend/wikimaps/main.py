"""
WikiMaps Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers.
Who:   uvicorn (uvicorn wikimaps.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                        FastAPI App                       │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────────────────┐   │
    │  │ Req ID │→│ Logging │→│ GZip │→│ Signed session   │   │
    │  └────────┘ └─────────┘ └──────┘ └──────────────────┘   │
    │                                                          │
    │  Routers: auth · maps · points · users · /api/users ·    │
    │           health                                         │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Auth→401 │ Perm→403 │ NotFound→404 │ Valid→400 │ DB→500 │
    └──────────────────────────────────────────────────────────┘

Error bodies:
    JSON  for /api/*, */json and point routes
    HTML  (error / user_error views) for everything else
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from wikimaps import __version__
from wikimaps.config import settings
from wikimaps.database import dispose_engine
from wikimaps.exceptions import (
    AuthenticationRequiredError,
    PersistenceError,
    WikiMapsError,
)
from wikimaps.middleware.logging import RequestLoggingMiddleware
from wikimaps.middleware.request_id import RequestIDMiddleware, request_id_var
from wikimaps.middleware.session import SessionMiddleware
from wikimaps.routes import auth, health, maps, points, users, users_api
from wikimaps.templating import render

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # wikimaps.access already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.log_level == "DEBUG" else logging.WARNING
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("WikiMaps backend starting (%s)", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if settings.environment == "production":
            raise

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("WikiMaps backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def wants_json(request: Request) -> bool:
    """API-style paths get JSON errors; page routes get rendered views."""
    path = request.url.path
    return (
        path.startswith("/api/")
        or path.endswith("/json")
        or "/points" in path
        or "application/json" in request.headers.get("accept", "")
    )


def error_response(
    request: Request, status_code: int, error: str, message: str
) -> Response:
    rid = request_id_var.get("")
    if wants_json(request):
        return JSONResponse(
            status_code=status_code,
            content={"error": error, "message": message, "request_id": rid},
        )
    return render(
        request,
        "error",
        {"status_code": status_code, "message": message},
        status_code=status_code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and response bodies.

    Handler hierarchy:
        AuthenticationRequiredError → 401 user_error view (or JSON)
        PersistenceError            → 500, context logged, generic message
        WikiMapsError (others)      → exc.status_code (400 / 403 / 404)
        RequestValidationError      → 404 for a bad path id (point_not_added on
                                      the add-point route), 400 otherwise
        HTTPException (Starlette)   → its status (unknown routes, 405)
        Exception (fallback)        → 500, traceback logged
    """

    @app.exception_handler(AuthenticationRequiredError)
    async def handle_authentication_required(
        request: Request, exc: AuthenticationRequiredError
    ):
        if wants_json(request):
            return error_response(request, 401, exc.error_code, exc.message)
        return render(request, "user_error", {"message": exc.message}, status_code=401)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        rid = request_id_var.get("")
        logger.error("[%s] Persistence error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(WikiMapsError)
    async def handle_app_error(request: Request, exc: WikiMapsError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.error_code, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, exc.error_code, exc.message)
        return error_response(request, exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        bad_path = [e for e in errors if tuple(e.get("loc", ()))[:1] == ("path",)]
        if not bad_path:
            parts = []
            for error in errors:
                field = ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body")
                parts.append(f"{field or 'body'}: {error.get('msg', 'invalid value')}")
            return error_response(request, 400, "validation_error", "; ".join(parts))

        # A non-integer id cannot name a stored row
        names = ", ".join(str(e["loc"][-1]) for e in bad_path)
        logger.info(
            "[%s] Invalid path parameter(s) %s on %s",
            request_id_var.get(""),
            names,
            request.url.path,
        )
        if request.method == "POST" and request.url.path.rstrip("/").endswith("/points"):
            return error_response(
                request, 404, "point_not_added", f"{names} is not a valid identifier"
            )
        return error_response(request, 404, "not_found", "The requested page does not exist.")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        response = error_response(request, exc.status_code, "http_error", message)
        for name, value in (exc.headers or {}).items():
            response.headers[name] = value
        return response

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="WikiMaps",
        description="Create maps, pin points of interest and keep favourites.",
        version=__version__,
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → Session → routes
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_max_age,
        https_only=settings.session_https_only,
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(maps.router)
    app.include_router(points.router)
    app.include_router(users.router)
    app.include_router(users_api.router)
    app.include_router(health.router)

    return app


app = create_app()
