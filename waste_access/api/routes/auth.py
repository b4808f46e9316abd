from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from waste_access.api.error import to_http_error
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.app.services.security_events import report_security_event
from waste_access.app.services.security_guard import SecurityGuard
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.auth import (
    RefreshSessionUseCase,
    SessionTokens,
    SignInCommand,
    SignInResponse,
    SignInUseCase,
    SignOutResponse,
    SignOutUseCase,
    SignUpCommand,
    SignUpResponse,
    SignUpUseCase,
)
from waste_access.depends import (
    authenticate,
    enforce_auth_rate_limit,
    get_audit_recorder,
    get_auth_policy,
    get_identity_provider,
    get_request_meta,
    get_security_guard,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Sign in failures that count towards brute-force detection
BRUTE_FORCE_CODES = ("INVALID_CREDENTIALS", "ACCOUNT_LOCKED")


class SignUpRequest(BaseModel):
    """
    Sign up HTTP request payload

    Validates incoming HTTP request before converting to SignUpCommand.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, max_length=72, description="Password (8-72 chars)")
    full_name: Optional[str] = Field(None, max_length=255)


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignUpResponse)
async def signup(
    body: SignUpRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    guard: SecurityGuard = Depends(get_security_guard),
):
    """
    Create an account. New users are viewers without company access.

    Raises:
        - 409 Conflict: Email already exists
        - 422 Unprocessable Entity: Invalid input
        - 429 Too Many Requests: Auth rate limit
    """
    await enforce_auth_rate_limit(request, guard, audit, body.email)

    command = SignUpCommand(email=body.email, password=body.password, full_name=body.full_name)
    result = await SignUpUseCase(uow, audit, identity_provider).execute(
        command, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class SignInRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., max_length=72, description="User password")


@router.post("/signin", status_code=status.HTTP_200_OK, response_model=SignInResponse)
async def signin(
    body: SignInRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    policy: AuthPolicy = Depends(get_auth_policy),
    guard: SecurityGuard = Depends(get_security_guard),
):
    """
    Password sign in.

    Returns an access/refresh token pair, the profile and effective
    company grants.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Account deactivated
        - 423 Locked: Too many failed attempts
        - 429 Too Many Requests: Auth rate limit
    """
    await enforce_auth_rate_limit(request, guard, audit, body.email)

    meta = get_request_meta(request)
    email = body.email.lower()
    use_case = SignInUseCase(uow, audit, identity_provider, policy)
    result = await use_case.execute(SignInCommand(email=email, password=body.password), meta)

    if result.is_err():
        error = result.error
        if error.code in BRUTE_FORCE_CODES:
            if guard.brute_force.record_failure(email, meta.ip_address):
                await report_security_event(
                    "BRUTE_FORCE_DETECTED",
                    {
                        "ip": meta.ip_address,
                        "identifier": email,
                        "attempts": guard.brute_force.failures(email),
                        "userAgent": meta.user_agent,
                    },
                    audit,
                )
        raise to_http_error(error)

    guard.brute_force.record_success(email)
    return result.value


@router.post("/signout", status_code=status.HTTP_200_OK, response_model=SignOutResponse)
async def signout(
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """End the current session. The access and refresh tokens stop working."""
    result = await SignOutUseCase(uow, audit).execute(actor, get_request_meta(request))
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=SessionTokens)
async def refresh(
    body: RefreshRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
    policy: AuthPolicy = Depends(get_auth_policy),
    guard: SecurityGuard = Depends(get_security_guard),
):
    """
    Rotate the token pair of a live session.

    Raises:
        - 401 Unauthorized: Unknown, rotated-out or expired refresh token
        - 403 Forbidden: Account deactivated
        - 423 Locked: Account locked
    """
    await enforce_auth_rate_limit(request, guard, audit)

    use_case = RefreshSessionUseCase(uow, audit, identity_provider, policy)
    result = await use_case.execute(body.refresh_token, get_request_meta(request))
    if result.is_err():
        raise to_http_error(result.error)
    return result.value
