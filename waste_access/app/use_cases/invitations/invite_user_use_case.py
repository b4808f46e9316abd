"""
Invite User Use Case

Issues a single-use invitation to the platform or to a company.
"""

import secrets
from datetime import timedelta

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.identity_provider import token_digest
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.access.policy import (
    SUPER_ADMIN_REQUIRED,
    can_manage_company,
    manage_users_denied,
    may_assign_role,
)
from waste_access.domain.base import utcnow
from waste_access.domain.entities import (
    AuditAction,
    Invitation,
    InvitationStatus,
    default_permissions,
)
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import InvitationInfo, InviteUserCommand, InviteUserResponse


class InviteUserUseCase:
    """
    Use case for inviting a user.

    Business Rules:
    - Platform invitations (no company) need a platform admin
    - Company invitations need a platform admin or manage_users on it
    - Only super admins may invite as super_admin
    - One pending invitation per (company, email); a stale pending one
      is marked expired and replaced
    - Token: 32 bytes from secrets, expires after invitation_ttl_days
    - Omitted permissions fall back to the role defaults
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder, policy: AuthPolicy):
        self.uow = uow
        self.audit = audit
        self.policy = policy

    async def execute(
        self, actor: AccessContext, command: InviteUserCommand, meta: RequestMeta
    ) -> Result[InviteUserResponse]:
        email = command.email.strip().lower()
        if not may_assign_role(actor, command.role):
            return Return.err(SUPER_ADMIN_REQUIRED)

        now = utcnow()
        async with self.uow:
            if command.company_id is None:
                if not actor.is_platform_admin:
                    return Return.err(Error("ADMIN_REQUIRED", "Admin access required"))
            else:
                if not await can_manage_company(self.uow, actor, command.company_id, now):
                    return Return.err(manage_users_denied(command.company_id))
                company = await self.uow.companies.get_by_id(command.company_id)
                if company is None:
                    return Return.err(Error("COMPANY_NOT_FOUND", "Company not found"))

            existing = await self.uow.invitations.get_pending_by_company_and_email(
                command.company_id, email
            )
            if existing:
                if existing.expires_at > now:
                    return Return.err(
                        Error(
                            "INVITE_ALREADY_EXISTS",
                            "A pending invitation already exists for this email",
                        )
                    )
                existing.status = InvitationStatus.expired
                await self.uow.invitations.update(existing)

            permissions = command.permissions or default_permissions(command.role)
            token = secrets.token_urlsafe(32)
            invitation = Invitation(
                email=email,
                invited_by=actor.user_id,
                company_id=command.company_id,
                role=command.role,
                permissions=permissions.model_dump(),
                message=command.message,
                invitation_token_hash=token_digest(token),
                status=InvitationStatus.pending,
                expires_at=now + timedelta(days=self.policy.invitation_ttl_days),
                created_at=now,
            )
            await self.uow.invitations.create(invitation)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.user_invited,
                    "user_invitations",
                    invitation.id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    new_values={
                        "email": email,
                        "company_id": str(command.company_id) if command.company_id else None,
                        "role": command.role.value,
                        "permissions": permissions.model_dump(),
                    },
                ),
                self.uow,
            )

            response = InviteUserResponse(
                invitation=InvitationInfo.from_entity(invitation),
                invitation_token=token,
            )
            await self.uow.commit()

        return Return.ok(response)
