from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.adapter.repositories.audit_log_repository import AuditLogRepository
from waste_access.adapter.repositories.company_access_repository import CompanyAccessRepository
from waste_access.adapter.repositories.company_repository import CompanyRepository
from waste_access.adapter.repositories.credential_repository import CredentialRepository
from waste_access.adapter.repositories.invitation_repository import InvitationRepository
from waste_access.adapter.repositories.session_repository import SessionRepository
from waste_access.adapter.repositories.user_profile_repository import UserProfileRepository
from waste_access.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.profiles = UserProfileRepository(self.session)
        self.credentials = CredentialRepository(self.session)
        self.companies = CompanyRepository(self.session)
        self.company_access = CompanyAccessRepository(self.session)
        self.sessions = SessionRepository(self.session)
        self.invitations = InvitationRepository(self.session)
        self.audit_logs = AuditLogRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()

    def savepoint(self):
        return self.session.begin_nested()
