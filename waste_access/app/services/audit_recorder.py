"""
Audit Recorder

Turns AuditEvent values into audit_logs rows. Audit writes never fail the
operation that produced them.
"""

import logging
from typing import AsyncContextManager, Callable, Optional

from pydantic_core import to_jsonable_python

from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditLogEntry
from waste_access.domain.events import AuditEvent

logger = logging.getLogger(__name__)

UnitOfWorkScope = Callable[[], AsyncContextManager[UnitOfWork]]


def _jsonable(values):
    if values is None:
        return None
    return to_jsonable_python(values)


class AuditRecorder:
    """
    Append-only writer for the audit log.

    Business Rules:
    - With a unit of work, the row is written in a savepoint of that
      transaction, so it commits or rolls back together with the action
    - A failed insert rolls back only the savepoint
    - Without a unit of work, a fresh one is opened and committed
    - Failures are logged, never raised
    """

    def __init__(self, uow_scope: UnitOfWorkScope):
        self._uow_scope = uow_scope

    async def record(self, event: AuditEvent, uow: Optional[UnitOfWork] = None) -> None:
        entry = AuditLogEntry(
            user_id=event.user_id,
            session_id=event.session_id,
            action=event.action_name,
            resource_type=event.resource_type,
            resource_id=event.resource_id,
            old_values=_jsonable(event.old_values),
            new_values=_jsonable(event.new_values),
            event_metadata=_jsonable(event.metadata),
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            success=event.success,
        )
        try:
            if uow is not None:
                async with uow.savepoint():
                    await uow.audit_logs.append(entry)
            else:
                async with self._uow_scope() as own_uow:
                    async with own_uow:
                        await own_uow.audit_logs.append(entry)
                        await own_uow.commit()
        except Exception:
            logger.exception(
                "Failed to write audit log entry %s on %s/%s",
                entry.action,
                entry.resource_type,
                entry.resource_id,
            )
