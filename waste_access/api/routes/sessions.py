from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from waste_access.api.error import to_http_error
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.sessions import (
    ListSessionsUseCase,
    SessionListResponse,
    TerminateAllSessionsUseCase,
    TerminateSessionUseCase,
    TerminateSessionsResponse,
)
from waste_access.depends import (
    authenticate,
    get_audit_recorder,
    get_request_meta,
    get_unit_of_work,
    require_role,
)
from waste_access.domain.entities import UserRole

router = APIRouter(tags=["Sessions"])


@router.get("/sessions", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_my_sessions(
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Live sessions of the current user; the calling session is flagged current"""
    result = await ListSessionsUseCase(uow).execute(actor)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.get(
    "/users/{user_id}/sessions",
    status_code=status.HTTP_200_OK,
    response_model=SessionListResponse,
)
async def list_user_sessions(
    user_id: UUID,
    actor: AccessContext = Depends(require_role([UserRole.admin, UserRole.super_admin])),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    result = await ListSessionsUseCase(uow).execute(actor, user_id)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=TerminateSessionsResponse,
)
async def terminate_session(
    session_id: UUID,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    End one session.

    Users end their own sessions; platform admins may end anyone's.

    Raises:
        - 404 Not Found: Session does not exist or belongs to someone else
    """
    result = await TerminateSessionUseCase(uow, audit).execute(
        actor, session_id, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class TerminateAllRequest(BaseModel):
    user_id: Optional[UUID] = Field(
        None, description="Target user (admins only); defaults to the caller"
    )


@router.post(
    "/sessions/terminate-all",
    status_code=status.HTTP_200_OK,
    response_model=TerminateSessionsResponse,
)
async def terminate_all_sessions(
    request: Request,
    body: Optional[TerminateAllRequest] = None,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    End all sessions of a user.

    Without user_id the caller's other sessions end and the current one
    stays valid.
    """
    result = await TerminateAllSessionsUseCase(uow, audit).execute(
        actor, get_request_meta(request), body.user_id if body else None
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value
