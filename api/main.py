"""
api/main.py -- FastAPI application factory for the siteadmin API.

Run with:  uvicorn asgi:app --reload
           python main.py serve

create_app(settings) builds a fully wired application from an explicit
Settings value. Nothing here reads the environment; asgi.py and main.py
call get_settings() and pass the result in, and tests pass their own.

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the configured origins
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter

Lifespan handles startup (engine, migrations, stores, token issuer,
authenticator, authorizer) and shutdown (engine dispose) symmetrically.
A failed migration aborts startup: the server never serves requests
against a half-migrated schema.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import configure_limiter, limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.contacts import router as contacts_router
from api.routes.v1.news import router as news_router
from api.routes.v1.products import router as products_router
from api.routes.v1.settings import router as settings_router
from auth.authenticator import RequestAuthenticator
from auth.authorizer import CapabilityAuthorizer
from auth.errors import AuthError
from auth.store import PrincipalStore
from auth.tokens import TokenIssuer
from content.store import ContentStore
from core.config import Settings
from core.database import check_db_connected, create_db_engine
from migrations import MIGRATIONS, run_migrations

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("siteadmin.api")


def create_app(settings: Settings) -> FastAPI:
    """Build the siteadmin FastAPI application for the given settings."""

    # -----------------------------------------------------------------------
    # Lifespan
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application-level resources across the full server lifetime.

        Startup order matters:
          1. Engine first -- everything else shares it.
          2. Migrations second -- stores assume the schema is current.
             MigrationError propagates and aborts startup.
          3. Stores, then the token issuer, then the authenticator and
             authorizer that depend on them.
        """
        logger.info("siteadmin API starting up (environment=%s)", settings.environment)
        engine = create_db_engine(settings.database_url, echo=settings.debug)
        app.state.engine = engine
        try:
            applied = run_migrations(engine, MIGRATIONS)
            logger.info("Schema up to date (%d migration(s) applied this run)", len(applied))

            app.state.principal_store = PrincipalStore(engine)
            app.state.content_store = ContentStore(engine)
            app.state.token_issuer = TokenIssuer.from_settings(settings)
            app.state.authenticator = RequestAuthenticator(app.state.token_issuer)
            app.state.authorizer = CapabilityAuthorizer(app.state.principal_store)
            logger.info("Auth initialized (token lifetime=%ds)", settings.token_expire_seconds)

            yield
        finally:
            engine.dispose()
            logger.info("siteadmin API shutdown complete")

    # -----------------------------------------------------------------------
    # App instantiation
    # -----------------------------------------------------------------------

    app = FastAPI(
        title="siteadmin API",
        description="Content administration API for the bilingual marketing site.",
        version=API_VERSION,
        lifespan=lifespan,
        # No interactive docs in production.
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )
    app.state.settings = settings

    # -----------------------------------------------------------------------
    # Middleware stack
    # -----------------------------------------------------------------------

    configure_limiter(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    app.add_middleware(SlowAPIMiddleware)

    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

    # -----------------------------------------------------------------------
    # Request logging middleware
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    # -----------------------------------------------------------------------
    # Router registration
    # -----------------------------------------------------------------------

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(products_router, prefix="/api/v1", tags=["Products"])
    app.include_router(news_router, prefix="/api/v1", tags=["News"])
    app.include_router(contacts_router, prefix="/api/v1", tags=["Contacts"])
    app.include_router(settings_router, prefix="/api/v1", tags=["Settings"])

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same ErrorResponse envelope so API clients can
    # parse errors uniformly without inspecting status codes to choose a schema.
    # -----------------------------------------------------------------------

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        """Map authenticator/authorizer rejections onto 401/403.

        The body carries only the coarse message on the exception. The
        precise reason was already logged by whoever raised it.
        """
        response = JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(
                exclude_none=True
            ),
        )
        if exc.status_code == 401:
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with a structured error when a rate limit is exceeded.

        Plain def: SlowAPIMiddleware calls this directly, outside the event loop.
        """
        retry_after = int(getattr(exc, "retry_after", 60))
        response = JSONResponse(
            status_code=429,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="rate_limited",
                    message="Too many requests. Please try again later.",
                    detail=str(exc),
                )
            ).model_dump(),
        )
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when request body or query params fail validation."""
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="validation_error",
                    message="Request validation failed.",
                    detail=str(exc.errors()),
                )
            ).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        Route handlers raise HTTPException with a {"code", "message"} dict as
        detail; that dict becomes the error field as-is.
        """
        if isinstance(exc.detail, dict):
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.detail},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(
                    code=f"http_{exc.status_code}",
                    message=str(exc.detail),
                )
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception goes to the log only. Outside production the
        exception text is echoed in detail to ease local debugging.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="internal_error",
                    message="Internal server error.",
                    detail=None if settings.is_production else str(exc),
                )
            ).model_dump(exclude_none=True),
        )

    # -----------------------------------------------------------------------
    # Health endpoint
    #
    # No rate limit and no auth -- load balancers must always reach it.
    # -----------------------------------------------------------------------

    @app.get("/api/v1/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return API liveness, version, and database reachability."""
        db_ok = check_db_connected(request.app.state.engine)
        return HealthResponse(
            status="healthy" if db_ok else "degraded",
            version=API_VERSION,
            components={"app": "ok", "database": "ok" if db_ok else "error"},
        )

    return app
