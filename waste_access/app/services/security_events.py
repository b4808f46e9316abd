"""
Security Events

Logs guard rejections and anomalies and mirrors them into the audit log.
"""

import logging
from typing import Any, Dict, Optional

from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.domain.events import AuditEvent

logger = logging.getLogger(__name__)

SECURITY_EVENTS_RESOURCE = "security_events"

_SEVERITY = {
    "BRUTE_FORCE_DETECTED": "critical",
    "MALICIOUS_REQUEST_BLOCKED": "critical",
    "AUTH_RATE_LIMIT_EXCEEDED": "high",
    "SUSPICIOUS_IP_BLOCKED": "high",
    "RATE_LIMIT_EXCEEDED": "medium",
    "PAYLOAD_TOO_LARGE": "medium",
    "BOT_TRAFFIC_DETECTED": "low",
}

_LOG_LEVEL = {
    "critical": logging.CRITICAL,
    "high": logging.WARNING,
    "medium": logging.WARNING,
    "low": logging.INFO,
}


def event_severity(event: str) -> str:
    return _SEVERITY.get(event, "low")


async def report_security_event(
    event: str,
    details: Dict[str, Any],
    recorder: Optional[AuditRecorder] = None,
) -> None:
    severity = event_severity(event)
    logger.log(_LOG_LEVEL[severity], "Security event [%s] severity=%s %s", event, severity, details)

    if recorder is None:
        return
    await recorder.record(
        AuditEvent(
            action=event,
            resource_type=SECURITY_EVENTS_RESOURCE,
            metadata={**details, "severity": severity},
            ip_address=details.get("ip"),
            user_agent=details.get("userAgent"),
            success=False,
        )
    )
