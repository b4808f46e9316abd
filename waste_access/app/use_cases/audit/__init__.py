"""
Audit Use Cases

All audit-related business logic.
"""

from .get_audit_logs_use_case import AuditLogItem, AuditLogPage, GetAuditLogsUseCase

__all__ = [
    "GetAuditLogsUseCase",
    "AuditLogItem",
    "AuditLogPage",
]
