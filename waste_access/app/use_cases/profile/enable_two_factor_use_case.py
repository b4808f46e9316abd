import base64
import secrets
from urllib.parse import quote

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditAction
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import TwoFactorSetupResponse

TOTP_ISSUER = "Waste Intelligence"


def generate_totp_secret() -> str:
    """160-bit base32 secret, the size authenticator apps expect"""
    return base64.b32encode(secrets.token_bytes(20)).decode("ascii").rstrip("=")


def otpauth_uri(email: str, secret: str, issuer: str = TOTP_ISSUER) -> str:
    label = quote(f"{issuer}:{email}")
    return f"otpauth://totp/{label}?secret={secret}&issuer={quote(issuer)}"


class EnableTwoFactorUseCase:
    """
    Turn on TOTP two-factor authentication for the caller.

    Business Rules:
    - Fails with TWO_FACTOR_ALREADY_ENABLED when already on
    - Secret is stored with the credentials, never on the profile
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, meta: RequestMeta
    ) -> Result[TwoFactorSetupResponse]:
        async with self.uow:
            profile = await self.uow.profiles.get_by_id(actor.user_id)
            credential = await self.uow.credentials.get_by_user_id(actor.user_id)
            if profile is None or credential is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if profile.two_factor_enabled:
                return Return.err(
                    Error("TWO_FACTOR_ALREADY_ENABLED", "Two-factor authentication is already enabled")
                )

            secret = generate_totp_secret()
            credential.two_factor_secret = secret
            await self.uow.credentials.update(credential)

            profile.two_factor_enabled = True
            await self.uow.profiles.update(profile)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.two_factor_enabled,
                    "user_profiles",
                    actor.user_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                ),
                self.uow,
            )
            response = TwoFactorSetupResponse(
                secret=secret, otpauth_uri=otpauth_uri(profile.email, secret)
            )
            await self.uow.commit()

        return Return.ok(response)
