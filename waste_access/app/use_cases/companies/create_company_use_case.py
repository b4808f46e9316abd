"""
Create Company Use Case

Registers the reference row that company access grants point at. Company
data itself lives in the dashboard's own store.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditAction, Company
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return


class CompanyInfo(BaseModel):
    id: UUID
    name: str
    created_at: datetime


class CreateCompanyUseCase:
    """
    Business Rules:
    - Name is trimmed and must not be empty
    - An explicit id is accepted so ids can mirror the dashboard's store
    - Reusing an existing id fails with COMPANY_ALREADY_EXISTS
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, name: str, meta: RequestMeta, company_id: Optional[UUID] = None
    ) -> Result[CompanyInfo]:
        name = name.strip()
        if not name:
            return Return.err(Error("VALIDATION_ERROR", "Company name is required"))

        async with self.uow:
            if company_id is not None and await self.uow.companies.get_by_id(company_id):
                return Return.err(
                    Error("COMPANY_ALREADY_EXISTS", "A company with this id already exists")
                )

            company = Company(name=name)
            if company_id is not None:
                company.id = company_id
            company = await self.uow.companies.create(company)
            info = CompanyInfo(id=company.id, name=company.name, created_at=company.created_at)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.company_created,
                    "companies",
                    company.id,
                    meta=meta,
                    new_values={"name": name},
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(info)
