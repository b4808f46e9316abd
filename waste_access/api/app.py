import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.adapter.database import create_engine
from waste_access.adapter.services.jwt_identity_provider import JwtIdentityProvider
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.security_guard import RateLimitConfig, SecurityGuard
from waste_access.depends import enforce_security_guard

from .error import ClientError, ServerError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


async def handle_client_error(request: Request, exc: ClientError):
    error = exc.base_error
    content = {"error": error.message, "code": error.code, **error.details}
    logger.warning(f"Client error: {error.code} {request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_server_error(request: Request, exc: ServerError):
    logger.error(f"Server error: {exc.base_error.code} {exc.base_error.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": exc.base_error.code},
    )


def build_security_guard(ApplicationConfig) -> SecurityGuard:
    block = dict(
        block_after_throttles=ApplicationConfig.RATE_LIMIT_BLOCK_AFTER_THROTTLES,
        block_duration_ms=ApplicationConfig.RATE_LIMIT_BLOCK_DURATION_MS,
    )
    return SecurityGuard(
        general=RateLimitConfig(
            window_ms=ApplicationConfig.RATE_LIMIT_WINDOW_MS,
            max_requests=ApplicationConfig.RATE_LIMIT_MAX_REQUESTS,
            **block,
        ),
        auth=RateLimitConfig(
            window_ms=ApplicationConfig.AUTH_RATE_LIMIT_WINDOW_MS,
            max_requests=ApplicationConfig.AUTH_RATE_LIMIT_MAX_REQUESTS,
            message="Too many authentication attempts, please try again later.",
            code="AUTH_RATE_LIMIT_EXCEEDED",
            **block,
        ),
        brute_force_threshold=ApplicationConfig.BRUTE_FORCE_THRESHOLD,
        brute_force_reset_seconds=ApplicationConfig.BRUTE_FORCE_RESET_SECONDS,
        whitelist=ApplicationConfig.WHITELISTED_IPS,
    )


def create_app(ApplicationConfig) -> FastAPI:
    engine = create_engine(ApplicationConfig.DB_URI, ApplicationConfig.DB_TIMEOUT_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ApplicationConfig.DB_CREATE_TABLES:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        yield
        await engine.dispose()

    app = FastAPI(
        title="Waste Intelligence Access Control",
        version="0.1.0",
        lifespan=lifespan,
        dependencies=[Depends(enforce_security_guard)],
    )

    app.state.config = ApplicationConfig
    app.state.engine = engine
    app.state.session_factory = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    app.state.identity_provider = JwtIdentityProvider(
        secret=ApplicationConfig.JWT_SECRET,
        algorithm=ApplicationConfig.JWT_ALGORITHM,
        access_token_ttl_minutes=ApplicationConfig.ACCESS_TOKEN_TTL_MINUTES,
        bcrypt_rounds=ApplicationConfig.BCRYPT_ROUNDS,
    )
    app.state.security_guard = build_security_guard(ApplicationConfig)
    app.state.auth_policy = AuthPolicy.from_config(ApplicationConfig)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    if ApplicationConfig.ENABLE_LOGGING_MIDDLEWARE:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms"
            )
            return response

    from waste_access.api.routes import (
        access,
        admin,
        audit,
        auth,
        health_check,
        invitation,
        sessions,
        user,
    )

    prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, prefix=prefix, tags=["Health"])
    app.include_router(auth.router, prefix=prefix, tags=["Authentication"])
    app.include_router(user.router, prefix=prefix, tags=["User"])
    app.include_router(sessions.router, prefix=prefix, tags=["Sessions"])
    app.include_router(access.router, prefix=prefix, tags=["Company Access"])
    app.include_router(invitation.router, prefix=prefix, tags=["Invitations"])
    app.include_router(audit.router, prefix=prefix, tags=["Audit"])
    app.include_router(admin.router, prefix=prefix, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
