from dataclasses import dataclass


@dataclass(frozen=True)
class AuthPolicy:
    """Lockout and lifetime settings shared by the auth use cases"""

    max_failed_login_attempts: int = 5
    lockout_minutes: int = 30
    session_ttl_hours: int = 24
    invitation_ttl_days: int = 7
    inactive_session_retention_days: int = 30
    password_change_report_days: int = 30

    @classmethod
    def from_config(cls, config) -> "AuthPolicy":
        return cls(
            max_failed_login_attempts=config.MAX_FAILED_LOGIN_ATTEMPTS,
            lockout_minutes=config.LOCKOUT_MINUTES,
            session_ttl_hours=config.SESSION_TTL_HOURS,
            invitation_ttl_days=config.INVITATION_TTL_DAYS,
        )
