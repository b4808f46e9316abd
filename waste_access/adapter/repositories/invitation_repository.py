from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.invitation_repository import IInvitationRepository
from waste_access.domain.entities import Invitation, InvitationStatus


class InvitationRepository(IInvitationRepository):
    """Invitation repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        """Get invitation by ID"""
        stmt = select(Invitation).where(Invitation.id == invitation_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_token_hash(self, token_hash: str) -> Optional[Invitation]:
        """Get invitation by the digest of its token"""
        stmt = select(Invitation).where(Invitation.invitation_token_hash == token_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_pending_by_company_and_email(
        self, company_id: Optional[UUID], email: str
    ) -> Optional[Invitation]:
        """Get pending invitation by company and email"""
        if company_id is None:
            company_clause = Invitation.company_id.is_(None)
        else:
            company_clause = Invitation.company_id == company_id
        stmt = select(Invitation).where(
            company_clause,
            Invitation.email == email.lower(),
            Invitation.status == InvitationStatus.pending,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_pending_by_email(self, email: str, now: datetime) -> List[Invitation]:
        stmt = (
            select(Invitation)
            .where(
                Invitation.email == email.lower(),
                Invitation.status == InvitationStatus.pending,
                Invitation.expires_at > now,
            )
            .order_by(Invitation.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation"""
        invitation.email = invitation.email.lower()
        self.session.add(invitation)
        await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def update(self, invitation: Invitation) -> Invitation:
        """Update existing invitation"""
        self.session.add(invitation)
        await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def mark_accepted(
        self, invitation_id: UUID, user_id: UUID, at: datetime
    ) -> bool:
        stmt = (
            update(Invitation)
            .where(
                Invitation.id == invitation_id,
                Invitation.status == InvitationStatus.pending,
            )
            .values(status=InvitationStatus.accepted, accepted_by=user_id, accepted_at=at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def expire_pending(self, now: datetime) -> int:
        stmt = (
            update(Invitation)
            .where(
                Invitation.status == InvitationStatus.pending,
                Invitation.expires_at <= now,
            )
            .values(status=InvitationStatus.expired)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def count_pending(self, now: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(Invitation)
            .where(
                Invitation.status == InvitationStatus.pending,
                Invitation.expires_at > now,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
