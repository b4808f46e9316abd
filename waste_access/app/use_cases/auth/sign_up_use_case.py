from sqlalchemy.exc import IntegrityError

from waste_access.app.services.access_context import ProfileView
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditAction, UserCredential, UserProfile, UserRole
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import SignUpCommand, SignUpResponse

EMAIL_ALREADY_EXISTS = Error("EMAIL_ALREADY_EXISTS", "Email already registered")


class SignUpUseCase:
    """
    Register a new user.

    Business Rules:
    - Email is unique (case-insensitive)
    - Password stored as bcrypt hash by the identity provider
    - New profiles start as active viewers with no company access
    """

    def __init__(
        self, uow: UnitOfWork, audit: AuditRecorder, identity_provider: IIdentityProvider
    ):
        self.uow = uow
        self.audit = audit
        self.identity_provider = identity_provider

    async def execute(self, command: SignUpCommand, meta: RequestMeta) -> Result[SignUpResponse]:
        email = command.email.strip().lower()

        async with self.uow:
            existing = await self.uow.profiles.get_by_email(email)
            if existing:
                return Return.err(EMAIL_ALREADY_EXISTS)

            profile = UserProfile(
                email=email,
                full_name=command.full_name,
                role=UserRole.viewer,
            )
            try:
                await self.uow.profiles.create(profile)
            except IntegrityError:
                # Lost a race with a concurrent sign up for the same email
                return Return.err(EMAIL_ALREADY_EXISTS)

            await self.uow.credentials.create(
                UserCredential(
                    user_id=profile.id,
                    password_hash=self.identity_provider.hash_password(command.password),
                )
            )

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.user_signup,
                    "user_profiles",
                    profile.id,
                    user_id=profile.id,
                    meta=meta,
                    new_values={"email": email, "role": profile.role.value},
                ),
                self.uow,
            )

            response = SignUpResponse(user=ProfileView.from_entity(profile))
            await self.uow.commit()

        return Return.ok(response)
