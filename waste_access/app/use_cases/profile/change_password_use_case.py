from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, LogoutReason
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import ChangePasswordResponse


class ChangePasswordUseCase:
    """
    Change the caller's password.

    Business Rules:
    - Current password must verify
    - New password must differ from the current one
    - Sets password_changed_at
    - Ends every other session of the user (reason password_changed)
    """

    def __init__(
        self, uow: UnitOfWork, audit: AuditRecorder, identity_provider: IIdentityProvider
    ):
        self.uow = uow
        self.audit = audit
        self.identity_provider = identity_provider

    async def execute(
        self,
        actor: AccessContext,
        current_password: str,
        new_password: str,
        meta: RequestMeta,
    ) -> Result[ChangePasswordResponse]:
        if current_password == new_password:
            return Return.err(
                Error("PASSWORD_UNCHANGED", "New password must differ from the current one")
            )

        now = utcnow()
        async with self.uow:
            credential = await self.uow.credentials.get_by_user_id(actor.user_id)
            password_hash = credential.password_hash if credential else None
            if not self.identity_provider.verify_password(current_password, password_hash):
                return Return.err(
                    Error("INVALID_CURRENT_PASSWORD", "Current password is incorrect")
                )

            credential.password_hash = self.identity_provider.hash_password(new_password)
            await self.uow.credentials.update(credential)

            profile = await self.uow.profiles.get_by_id(actor.user_id)
            profile.password_changed_at = now
            await self.uow.profiles.update(profile)

            ended = await self.uow.sessions.end_all_for_user(
                actor.user_id,
                LogoutReason.password_changed.value,
                now,
                except_session_id=actor.session_id,
            )

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.password_change,
                    "user_profiles",
                    actor.user_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    metadata={"sessions_ended": ended},
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(ChangePasswordResponse(status="password_changed", sessions_ended=ended))
