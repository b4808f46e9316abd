from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.access.policy import can_manage_company
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, InvitationStatus
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import RevokeInvitationResponse


class RevokeInvitationUseCase:
    """
    Use case for revoking a pending invitation.

    Business Rules:
    - Allowed for the inviter, platform admins, or managers of the company
    - Only pending invitations can be revoked
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, invitation_id: UUID, meta: RequestMeta
    ) -> Result[RevokeInvitationResponse]:
        async with self.uow:
            invitation = await self.uow.invitations.get_by_id(invitation_id)
            if invitation is None:
                return Return.err(Error("INVITATION_NOT_FOUND", "Invitation not found"))

            allowed = invitation.invited_by == actor.user_id or actor.is_platform_admin
            if not allowed and invitation.company_id is not None:
                allowed = await can_manage_company(
                    self.uow, actor, invitation.company_id, utcnow()
                )
            if not allowed:
                return Return.err(
                    Error("PERMISSION_DENIED", "Not allowed to revoke this invitation")
                )

            if invitation.status != InvitationStatus.pending:
                return Return.err(
                    Error(
                        "INVITATION_NOT_PENDING",
                        "Invitation is no longer pending",
                        {"status": invitation.status.value},
                    )
                )

            invitation.status = InvitationStatus.revoked
            await self.uow.invitations.update(invitation)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.invitation_revoked,
                    "user_invitations",
                    invitation.id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    old_values={"status": InvitationStatus.pending.value},
                    new_values={"status": InvitationStatus.revoked.value},
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(RevokeInvitationResponse(status="revoked"))
