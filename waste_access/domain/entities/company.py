"""
Company Entity

Reference row for a waste company that grants point at.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from ..base import utcnow


class Company(SQLModel, table=True):
    __tablename__ = "companies"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=255, index=True)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
