"""
AuditLogEntry Entity

Immutable log of security-relevant actions.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from ..base import utcnow


class AuditLogEntry(SQLModel, table=True):
    """
    AuditLogEntry entity - append-only record of one logical action.

    Business Rules:
    - Immutable (never updated or deleted by the application)
    - user_id is null for unauthenticated failures and security events
    - old_values/new_values hold before/after snapshots where applicable
    """

    __tablename__ = "audit_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: Optional[UUID] = Field(default=None, index=True)
    session_id: Optional[UUID] = Field(default=None)

    action: str = Field(max_length=100)
    resource_type: str = Field(max_length=100)
    resource_id: Optional[str] = Field(default=None, max_length=255)

    old_values: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    new_values: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    success: bool = Field(default=True)

    timestamp: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_timestamp", "timestamp"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_resource", "resource_type", "resource_id"),
    )
