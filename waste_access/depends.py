"""
FastAPI dependencies.

Everything stateful (session factory, identity provider, security guard,
configuration) is read from app.state, so tests can swap any of it through
app.dependency_overrides.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence
from urllib.parse import unquote_plus
from uuid import UUID

from fastapi import Depends, Header, Request, status
from sqlalchemy.orm import sessionmaker

from waste_access.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from waste_access.api.error import ClientError, ServerError, to_http_error
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder, UnitOfWorkScope
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.app.services.permission_resolver import PermissionResolver
from waste_access.app.services.security_events import report_security_event
from waste_access.app.services.security_guard import (
    RateLimitConfig,
    SecurityGuard,
    classify_user_agent,
    find_malicious_pattern,
)
from waste_access.app.services.session_validator import SessionValidator, parse_bearer
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditAction, Permission, UserRole
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error

logger = logging.getLogger(__name__)

COMPANY_ID_HEADER = "X-Company-Id"


# ============================================================================
# Infrastructure
# ============================================================================


def get_config(request: Request):
    return request.app.state.config


def get_session_factory(request: Request) -> sessionmaker:
    return request.app.state.session_factory


async def get_unit_of_work(session_factory: sessionmaker = Depends(get_session_factory)):
    async with session_factory() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_uow_scope(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> UnitOfWorkScope:
    @asynccontextmanager
    async def scope():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    return scope


def get_audit_recorder(uow_scope: UnitOfWorkScope = Depends(get_uow_scope)) -> AuditRecorder:
    return AuditRecorder(uow_scope)


def get_identity_provider(request: Request) -> IIdentityProvider:
    return request.app.state.identity_provider


def get_security_guard(request: Request) -> SecurityGuard:
    return request.app.state.security_guard


def get_auth_policy(request: Request) -> AuthPolicy:
    return request.app.state.auth_policy


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


# ============================================================================
# Authentication
# ============================================================================


async def authenticate(
    request: Request,
    authorization: Optional[str] = Header(None),
    uow: UnitOfWork = Depends(get_unit_of_work),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    audit: AuditRecorder = Depends(get_audit_recorder),
    config=Depends(get_config),
) -> AccessContext:
    """
    Validate the bearer token and return the caller's AccessContext.

    Raises:
        ClientError: 401 missing/invalid/expired token, 403 deactivated,
            423 locked
        ServerError: session store failure
    """
    validator = SessionValidator(uow, identity_provider, config.AUTH_TIMEOUT_SECONDS)
    result = await validator.validate(authorization)
    if result.is_ok():
        return result.value

    error = result.error
    if error.code == "AUTH_ERROR":
        raise ServerError(error)
    if error.code != "UNAUTHORIZED":
        await audit.record(
            AuditEvent.build(
                AuditAction.auth_denied,
                "authentication",
                meta=get_request_meta(request),
                metadata={"code": error.code, "path": request.url.path},
                success=False,
            )
        )
    raise to_http_error(error, {"USER_NOT_FOUND": status.HTTP_401_UNAUTHORIZED})


def resolve_company_id(request: Request, company_id_param: str = "company_id") -> UUID:
    """Company id from path params, then query params, then the X-Company-Id header"""
    raw = (
        request.path_params.get(company_id_param)
        or request.query_params.get(company_id_param)
        or request.headers.get(COMPANY_ID_HEADER)
    )
    if not raw:
        raise ClientError(
            Error("COMPANY_ID_REQUIRED", "Company ID is required"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError:
        raise ClientError(
            Error("INVALID_COMPANY_ID", "Company ID must be a UUID"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )


async def _record_denial(
    audit: AuditRecorder,
    request: Request,
    actor: AccessContext,
    company_id: UUID,
    permission: Optional[str],
) -> None:
    await audit.record(
        AuditEvent.build(
            AuditAction.permission_denied,
            "companies",
            company_id,
            user_id=actor.user_id,
            session_id=actor.session_id,
            meta=get_request_meta(request),
            metadata={"required_permission": permission, "path": request.url.path},
            success=False,
        )
    )


def require_permission(permission: Permission, company_id_param: str = "company_id"):
    """Dependency factory: caller must hold `permission` on the request's company"""

    async def dependency(
        request: Request,
        actor: AccessContext = Depends(authenticate),
        uow: UnitOfWork = Depends(get_unit_of_work),
        audit: AuditRecorder = Depends(get_audit_recorder),
    ) -> AccessContext:
        company_id = resolve_company_id(request, company_id_param)
        if await PermissionResolver(uow).has_permission(actor.user_id, company_id, permission):
            return actor

        await _record_denial(audit, request, actor, company_id, Permission(permission).value)
        raise ClientError(
            Error(
                "PERMISSION_DENIED",
                "Permission denied",
                {
                    "requiredPermission": Permission(permission).value,
                    "companyId": str(company_id),
                },
            ),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return dependency


def require_company_access(company_id_param: str = "company_id"):
    """Dependency factory: caller must hold any effective grant on the company"""

    async def dependency(
        request: Request,
        actor: AccessContext = Depends(authenticate),
        uow: UnitOfWork = Depends(get_unit_of_work),
        audit: AuditRecorder = Depends(get_audit_recorder),
    ) -> AccessContext:
        company_id = resolve_company_id(request, company_id_param)
        if await PermissionResolver(uow).has_company_access(actor.user_id, company_id):
            return actor

        await _record_denial(audit, request, actor, company_id, None)
        raise ClientError(
            Error(
                "COMPANY_ACCESS_REQUIRED",
                "Access to this company is required",
                {"companyId": str(company_id)},
            ),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return dependency


def require_role(roles: Sequence[UserRole]):
    """Dependency factory: caller's platform role must be one of `roles`"""
    allowed = frozenset(UserRole(r) for r in roles)

    async def dependency(actor: AccessContext = Depends(authenticate)) -> AccessContext:
        if actor.profile.is_active and actor.role in allowed:
            return actor
        raise ClientError(
            Error(
                "FORBIDDEN",
                "Insufficient role",
                {
                    "requiredRoles": sorted(r.value for r in allowed),
                    "userRole": actor.role.value,
                },
            ),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return dependency


async def require_admin(actor: AccessContext = Depends(authenticate)) -> AccessContext:
    if not actor.is_platform_admin:
        raise ClientError(
            Error("ADMIN_REQUIRED", "Admin access required"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return actor


async def require_super_admin(actor: AccessContext = Depends(authenticate)) -> AccessContext:
    if not actor.is_super_admin:
        raise ClientError(
            Error("SUPER_ADMIN_REQUIRED", "Super admin access required"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return actor


# ============================================================================
# Rate limiting and anomaly blocking
# ============================================================================


def _rate_limited(code: str, message: str, retry_after: int) -> ClientError:
    return ClientError(
        Error(code, message, {"retryAfter": retry_after}),
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(retry_after)},
    )


async def _general_limit_key(
    request: Request, ip: str, identity_provider: IIdentityProvider
) -> str:
    """User id from a verified bearer token, client IP otherwise"""
    token = parse_bearer(request.headers.get("authorization"))
    if token is not None:
        claims = await identity_provider.verify_access_token(token)
        if claims.is_ok():
            return f"user:{claims.value.user_id}"
    return ip


async def enforce_security_guard(
    request: Request,
    guard: SecurityGuard = Depends(get_security_guard),
    audit: AuditRecorder = Depends(get_audit_recorder),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    config=Depends(get_config),
) -> None:
    """
    App-wide guard, in order: payload size, injection patterns, suspicious-IP
    block, bot monitoring and the general limiter.

    Health checks are exempt from everything. Whitelisted IPs skip the block
    and the limiter but not request validation.
    """
    if request.url.path.endswith("/health"):
        return
    ip = client_ip(request)
    user_agent = request.headers.get("user-agent")

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > config.MAX_PAYLOAD_SIZE:
        await report_security_event(
            "PAYLOAD_TOO_LARGE", {"ip": ip, "path": request.url.path, "size": int(content_length)}
        )
        raise ClientError(
            Error("PAYLOAD_TOO_LARGE", "Request payload too large"),
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )

    body = await request.body()
    pattern = find_malicious_pattern(
        request.url.path,
        unquote_plus(request.url.query),
        body.decode("utf-8", errors="replace"),
    )
    if pattern is not None:
        await report_security_event(
            "MALICIOUS_REQUEST_BLOCKED",
            {
                "ip": ip,
                "path": request.url.path,
                "method": request.method,
                "pattern": pattern,
                "userAgent": user_agent,
            },
            audit,
        )
        raise ClientError(
            Error("INVALID_REQUEST", "Invalid request detected"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if guard.is_whitelisted(ip):
        return

    if guard.is_blocked(ip):
        await report_security_event(
            "SUSPICIOUS_IP_BLOCKED",
            {"ip": ip, "path": request.url.path, "userAgent": user_agent},
            audit,
        )
        raise ClientError(
            Error("SUSPICIOUS_ACTIVITY_BLOCKED", "Access denied due to suspicious activity"),
            status_code=status.HTTP_403_FORBIDDEN,
        )

    is_bot, is_suspicious_ua = classify_user_agent(user_agent)
    if is_bot or is_suspicious_ua:
        # Log only; scripted clients are allowed through
        await report_security_event(
            "BOT_TRAFFIC_DETECTED",
            {
                "ip": ip,
                "path": request.url.path,
                "userAgent": user_agent,
                "isBot": is_bot,
                "isSuspiciousUA": is_suspicious_ua,
            },
        )

    key = await _general_limit_key(request, ip, identity_provider)
    decision = guard.general.hit(key)
    if not decision.allowed:
        await report_security_event(
            "RATE_LIMIT_EXCEEDED",
            {"ip": ip, "key": key, "path": request.url.path, "state": decision.state.value},
            audit,
        )
        raise _rate_limited(
            guard.general_config.code, guard.general_config.message, decision.retry_after
        )


async def enforce_auth_rate_limit(
    request: Request,
    guard: SecurityGuard,
    audit: AuditRecorder,
    identifier: Optional[str] = None,
) -> None:
    """
    Auth limiter keyed by email when known, client IP otherwise.

    Reaching the limit also flags the client IP as suspicious, so a rapid
    attack is blocked before the per-identifier failure count gets high.
    """
    ip = client_ip(request)
    if guard.is_whitelisted(ip):
        return
    key = (identifier or "").strip().lower() or ip
    decision = guard.auth.hit(key)
    if not decision.allowed:
        flagged = guard.brute_force.flag(ip)
        await report_security_event(
            "AUTH_RATE_LIMIT_EXCEEDED",
            {
                "ip": ip,
                "identifier": key,
                "path": request.url.path,
                "userAgent": request.headers.get("user-agent"),
                "ipFlagged": flagged,
            },
            audit,
        )
        raise _rate_limited(
            "AUTH_RATE_LIMIT_EXCEEDED",
            guard.auth_config.message,
            decision.retry_after,
        )


def rate_limit(config: RateLimitConfig, name: Optional[str] = None):
    """
    Dependency factory for a per-route limiter keyed by client IP.

    Limiters are stored on the app's SecurityGuard under `name`, so two
    routes sharing a name share a budget.
    """
    limiter_name = name or f"{config.window_ms}:{config.max_requests}:{config.code}"

    async def dependency(
        request: Request,
        guard: SecurityGuard = Depends(get_security_guard),
        audit: AuditRecorder = Depends(get_audit_recorder),
    ) -> None:
        ip = client_ip(request)
        if guard.is_whitelisted(ip):
            return
        decision = guard.route_limiter(limiter_name, config).hit(ip)
        if not decision.allowed:
            await report_security_event(
                config.code,
                {"ip": ip, "path": request.url.path, "limiter": limiter_name},
                audit,
            )
            raise _rate_limited(config.code, config.message, decision.retry_after)

    return dependency
