"""
Membership Registration API — FastAPI Application Entry Point

Builds the app from an explicit Settings object: database engine, session
factory, M-Pesa client and rate limiter live on app.state and reach the
routes through dependencies. Serve with
`uvicorn members_api.main:create_app --factory`.
"""
import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from members_api.config import Settings, get_settings
from members_api.database import build_engine, build_session_factory, init_db
from members_api.errors import MembershipAPIError
from members_api.logging_config import configure_logging
from members_api.routes import registration_router, mpesa_router, members_router
from members_api.schemas.schemas import HealthResponse
from members_api.services.gateway_client import DarajaClient
from members_api.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    gateway: Optional[DarajaClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Membership registration with M-Pesa STK push payments. "
            "Registers payment requests, reconciles Safaricom callbacks, "
            "and answers membership checks."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    engine = engine or build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.gateway = gateway or DarajaClient(settings)
    app.state.register_limiter = RateLimiter(settings.REGISTER_RATE_LIMIT, settings.REGISTER_RATE_WINDOW)
    app.state.boot_time = time.time()

    # ─── Startup ─────────────────────────────────────────────────────
    @app.on_event("startup")
    def on_startup():
        """Initialize database tables and log boot info."""
        init_db(engine)
        logger.info(
            "\n%s\n  %s v%s\n  TIME: %s\n  M-PESA: %s (%s)\n  DATABASE: %s\n  PLANS: %s\n%s",
            "=" * 60,
            settings.APP_NAME, settings.APP_VERSION,
            datetime.now().isoformat(),
            settings.MPESA_ENV,
            "[OK] credentials loaded" if settings.MPESA_CONSUMER_KEY else "[!] credentials missing",
            engine.url.render_as_string(hide_password=True),
            settings.MEMBERSHIP_PLANS,
            "=" * 60,
        )

    # ─── Middleware ──────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every API request with timing."""
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 1)

        if request.url.path.startswith("/api"):
            logger.info("-> %s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

        return response

    # ─── Error Handlers ──────────────────────────────────────────────
    @app.exception_handler(MembershipAPIError)
    async def handle_api_error(request: Request, exc: MembershipAPIError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def handle_db_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Database error", "details": exc.__class__.__name__},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

    # ─── API Routers ─────────────────────────────────────────────────
    app.include_router(registration_router)
    app.include_router(mpesa_router)
    app.include_router(members_router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health():
        """Database connectivity, gateway environment and uptime."""
        db_ok = False
        db = app.state.session_factory()
        try:
            db.execute(text("SELECT 1"))
            db_ok = True
        except SQLAlchemyError:
            logger.warning("Health check: database unreachable")
        finally:
            db.close()

        return HealthResponse(
            status="healthy" if db_ok else "degraded",
            database="connected" if db_ok else "disconnected",
            mpesa_env=settings.MPESA_ENV,
            version=settings.APP_VERSION,
            uptime_seconds=round(time.time() - app.state.boot_time, 1),
        )

    return app

