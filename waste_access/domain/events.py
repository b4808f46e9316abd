"""
Audit Events

Value objects emitted by state-changing operations and consumed by the
AuditRecorder.
"""

from typing import Any, Dict, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .entities.enums import AuditAction


class RequestMeta(BaseModel):
    """Caller details captured at the HTTP boundary"""

    model_config = ConfigDict(frozen=True)

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Union[AuditAction, str]
    resource_type: str
    resource_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    user_id: Optional[UUID] = None
    session_id: Optional[UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool = True

    @property
    def action_name(self) -> str:
        if isinstance(self.action, AuditAction):
            return self.action.value
        return self.action

    @classmethod
    def build(
        cls,
        action: Union[AuditAction, str],
        resource_type: str,
        resource_id: Any = None,
        *,
        user_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        meta: Optional[RequestMeta] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        success: bool = True,
    ) -> "AuditEvent":
        meta = meta or RequestMeta()
        return cls(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            old_values=old_values,
            new_values=new_values,
            metadata=metadata,
            user_id=user_id,
            session_id=session_id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            success=success,
        )
