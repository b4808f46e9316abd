"""
Maintenance Use Cases

Housekeeping and reporting run by operators.
"""

from .cleanup_expired_data_use_case import CleanupExpiredDataUseCase, CleanupReport
from .security_report_use_case import SecurityReport, SecurityReportUseCase

__all__ = [
    "CleanupExpiredDataUseCase",
    "CleanupReport",
    "SecurityReportUseCase",
    "SecurityReport",
]
