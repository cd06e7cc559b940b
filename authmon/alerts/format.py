from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from authmon.detection.taxonomy import TaxonomyEntry
from authmon.events.normalize import SecurityEvent
from authmon.schemas import AlertSettings
from authmon.utils.time import to_epoch_ms, to_iso_utc


@dataclass(frozen=True)
class AlertMessage:
    title: str
    body: str
    channel_status: str
    recipients: List[str]
    event_name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def channel_status_for(severity: str) -> str:
    """Critical alerts are errors on the channel; everything else is a warning."""
    return "error" if severity == "Critical" else "warning"


def format_alert(
    event: SecurityEvent,
    settings: AlertSettings,
    entry: TaxonomyEntry,
    rule: Optional[str] = None,
) -> AlertMessage:
    severity = settings.alert_severity
    lines = [
        f"🚨 {severity} Security Incident Detected",
        "",
        "Details:",
        f"• User: {event.user_id}",
        f"• IP Address: {event.ip_address}",
        f"• Event Type: {event.event_type}",
        f"• Time: {to_iso_utc(event.timestamp)}",
        f"• Status: {'Success' if event.success else 'Failed'}",
    ]
    details = entry.render_details(event)
    if details:
        lines += ["", f"{entry.display_name}:"] + details
    if rule:
        lines += ["", f"Triggered by: {rule}"]
    lines += [
        "",
        f"Severity: {severity}",
        f"Notify: {', '.join(settings.alert_admins)}",
    ]

    return AlertMessage(
        title=entry.title,
        body="\n".join(lines),
        channel_status=channel_status_for(severity),
        recipients=list(settings.alert_admins),
        event_name=f"Security Alert: {entry.title}",
        metadata={
            "eventType": event.event_type,
            "userId": event.user_id,
            "ipAddress": event.ip_address,
            "timestamp": to_epoch_ms(event.timestamp),
            "attempts": event.attempts,
            "severity": severity,
            "rule": rule,
            "recipients": list(settings.alert_admins),
        },
    )
