from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditAction
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import EDITABLE_PROFILE_FIELDS, ProfileDetails, UpdateProfileCommand


class UpdateProfileUseCase:
    """
    Update the caller's own profile.

    Business Rules:
    - Only EDITABLE_PROFILE_FIELDS can change; role, email and status cannot
    - Fields omitted from the command are left untouched
    - Audited with the before/after values of the changed fields only
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, command: UpdateProfileCommand, meta: RequestMeta
    ) -> Result[ProfileDetails]:
        changes = command.model_dump(exclude_unset=True)

        async with self.uow:
            profile = await self.uow.profiles.get_by_id(actor.user_id)
            if profile is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            old_values = {}
            new_values = {}
            for field in EDITABLE_PROFILE_FIELDS:
                if field in changes and changes[field] != getattr(profile, field):
                    old_values[field] = getattr(profile, field)
                    new_values[field] = changes[field]
                    setattr(profile, field, changes[field])

            if new_values:
                await self.uow.profiles.update(profile)
                await self.audit.record(
                    AuditEvent.build(
                        AuditAction.profile_update,
                        "user_profiles",
                        profile.id,
                        user_id=actor.user_id,
                        session_id=actor.session_id,
                        meta=meta,
                        old_values=old_values,
                        new_values=new_values,
                    ),
                    self.uow,
                )

            details = ProfileDetails.from_entity(profile)
            await self.uow.commit()

        return Return.ok(details)
