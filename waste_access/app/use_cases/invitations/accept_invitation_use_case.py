"""
Accept Invitation Use Case

Redeems an invitation token for the signed-in user.
"""

import logging

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.identity_provider import token_digest
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import (
    AuditAction,
    InvitationStatus,
    PermissionSet,
    default_permissions,
)
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import AcceptInvitationResponse

logger = logging.getLogger(__name__)


class AcceptInvitationUseCase:
    """
    Use case for accepting an invitation.

    Business Rules:
    - Caller's email must match the invitation email
    - Invitation must be pending and unexpired; an expired one is marked
      expired and reported as INVITATION_EXPIRED
    - pending -> accepted is a conditional update, so a token is redeemed
      at most once even under concurrent requests
    - Company invitation: upserts the grant with the invited role and
      permissions
    - Platform invitation: sets the profile role
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, token: str, meta: RequestMeta
    ) -> Result[AcceptInvitationResponse]:
        now = utcnow()
        async with self.uow:
            invitation = await self.uow.invitations.get_by_token_hash(token_digest(token))
            if invitation is None:
                return Return.err(Error("INVITATION_NOT_FOUND", "Invitation not found"))

            if invitation.email != actor.profile.email.lower():
                return Return.err(
                    Error("INVITATION_EMAIL_MISMATCH", "Invitation was issued to another email")
                )

            if invitation.status != InvitationStatus.pending:
                return Return.err(
                    Error(
                        "INVITATION_NOT_PENDING",
                        "Invitation is no longer pending",
                        {"status": invitation.status.value},
                    )
                )

            if invitation.expires_at <= now:
                invitation.status = InvitationStatus.expired
                await self.uow.invitations.update(invitation)
                await self.uow.commit()
                return Return.err(Error("INVITATION_EXPIRED", "Invitation has expired"))

            accepted = await self.uow.invitations.mark_accepted(invitation.id, actor.user_id, now)
            if not accepted:
                logger.info("Invitation %s was redeemed concurrently", invitation.id)
                return Return.err(
                    Error(
                        "INVITATION_NOT_PENDING",
                        "Invitation is no longer pending",
                        {"status": InvitationStatus.accepted.value},
                    )
                )

            invitation_id = invitation.id
            company_id = invitation.company_id
            role = invitation.role
            if company_id is not None:
                permissions = (
                    PermissionSet(**invitation.permissions)
                    if invitation.permissions
                    else default_permissions(role)
                )
                await self.uow.company_access.upsert(
                    user_id=actor.user_id,
                    company_id=company_id,
                    role=role,
                    permissions=permissions,
                    granted_by=invitation.invited_by,
                    expires_at=None,
                )
            else:
                profile = await self.uow.profiles.get_by_id(actor.user_id)
                profile.role = role
                await self.uow.profiles.update(profile)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.invitation_accepted,
                    "user_invitations",
                    invitation_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    new_values={
                        "company_id": str(company_id) if company_id else None,
                        "role": role.value,
                    },
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(
            AcceptInvitationResponse(status="accepted", company_id=company_id, role=role)
        )
