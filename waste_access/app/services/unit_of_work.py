from abc import ABC, abstractmethod

from waste_access.app.repositories.audit_log_repository import IAuditLogRepository
from waste_access.app.repositories.company_access_repository import ICompanyAccessRepository
from waste_access.app.repositories.company_repository import ICompanyRepository
from waste_access.app.repositories.credential_repository import ICredentialRepository
from waste_access.app.repositories.invitation_repository import IInvitationRepository
from waste_access.app.repositories.session_repository import ISessionRepository
from waste_access.app.repositories.user_profile_repository import IUserProfileRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    profiles: IUserProfileRepository
    credentials: ICredentialRepository
    companies: ICompanyRepository
    company_access: ICompanyAccessRepository
    sessions: ISessionRepository
    invitations: IInvitationRepository
    audit_logs: IAuditLogRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

    @abstractmethod
    def savepoint(self):
        """
        Async context manager for a nested transaction.

        Leaving it with an exception rolls back only the work done inside.
        """
        pass
