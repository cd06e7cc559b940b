from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Type

from authmon.errors import UnknownEventTypeError
from authmon.events import payloads as p
from authmon.events.normalize import SecurityEvent


DetailRenderer = Callable[[SecurityEvent], List[str]]


@dataclass(frozen=True)
class TaxonomyEntry:
    event_type: str
    display_name: str
    icon: str
    payload_model: Type[p.AuthEventPayload]
    render_details: DetailRenderer

    @property
    def title(self) -> str:
        return f"{self.icon} {self.display_name}"


def _line(label: str, value: object) -> str:
    return f"• {label}: {value}"


def _attempts(e: SecurityEvent) -> List[str]:
    return [_line("Attempts", e.attempts)] if e.attempts is not None else []


def _query(e: SecurityEvent) -> List[str]:
    return [_line("Query", e.query)] if e.query else []


def _render_failed_login(e: SecurityEvent) -> List[str]:
    return _attempts(e) + _query(e)


def _render_unusual_pattern(e: SecurityEvent) -> List[str]:
    return [_line("Pattern", e.fields.get("pattern", "unspecified"))]


def _render_password_change(e: SecurityEvent) -> List[str]:
    return [_line("Previous Change", e.fields.get("previousChange", "unknown"))]


def _render_account_lockout(e: SecurityEvent) -> List[str]:
    return [_line("Duration", e.fields.get("lockoutDuration", "unspecified"))] + _attempts(e)


def _render_sql_injection(e: SecurityEvent) -> List[str]:
    return _query(e) or [_line("Query", "not captured")]


def _render_role_change(e: SecurityEvent) -> List[str]:
    current = e.fields.get("currentRole", "unknown")
    target = e.fields.get("targetRole", "unknown")
    return [_line("Role Change", f"{current} → {target}")] + _query(e)


def _render_session_hijacking(e: SecurityEvent) -> List[str]:
    out = [_line("Session", e.fields.get("sessionId", "unknown"))]
    if "originalIP" in e.fields or "hijackedIP" in e.fields:
        out.append(_line("IP Change", f"{e.fields.get('originalIP', '?')} → {e.fields.get('hijackedIP', '?')}"))
    if "tokenHash" in e.fields:
        out.append(_line("Token", e.fields["tokenHash"]))
    return out


def _render_brute_force(e: SecurityEvent) -> List[str]:
    out = _attempts(e)
    for label, key in (("Window", "timeWindow"), ("Target", "targetEndpoint"), ("Signature", "toolSignature")):
        if key in e.fields:
            out.append(_line(label, e.fields[key]))
    return out


def _render_suspicious_ip(e: SecurityEvent) -> List[str]:
    out = [_line("Country", e.fields.get("country", "unknown"))]
    if "vpnDetected" in e.fields:
        out.append(_line("VPN Detected", "Yes" if e.fields["vpnDetected"] else "No"))
    if "threatScore" in e.fields:
        out.append(_line("Threat Score", e.fields["threatScore"]))
    return out


# One entry per supported event type. Add a type by adding an entry here.
TAXONOMY: Dict[str, TaxonomyEntry] = {
    t.event_type: t
    for t in [
        TaxonomyEntry("failed_login", "Failed Login", "🔨", p.FailedLoginPayload, _render_failed_login),
        TaxonomyEntry("login_attempt", "Login Attempt", "🚪", p.LoginAttemptPayload, _render_failed_login),
        TaxonomyEntry("unusual_pattern", "Unusual Pattern", "🌐", p.UnusualPatternPayload, _render_unusual_pattern),
        TaxonomyEntry("password_change", "Password Change", "🔑", p.PasswordChangePayload, _render_password_change),
        TaxonomyEntry("account_lockout", "Account Lockout", "🔒", p.AccountLockoutPayload, _render_account_lockout),
        TaxonomyEntry("sql_injection_attempt", "SQL Injection Attempt", "💉", p.SqlInjectionPayload, _render_sql_injection),
        TaxonomyEntry("privilege_escalation", "Privilege Escalation", "👑", p.RoleChangePayload, _render_role_change),
        TaxonomyEntry("permission_change", "Permission Change", "🛡️", p.RoleChangePayload, _render_role_change),
        TaxonomyEntry("session_hijacking", "Session Hijacking", "🎭", p.SessionHijackingPayload, _render_session_hijacking),
        TaxonomyEntry("brute_force", "Brute Force", "⚔️", p.BruteForcePayload, _render_brute_force),
        TaxonomyEntry("suspicious_ip", "Suspicious IP", "🚩", p.SuspiciousIpPayload, _render_suspicious_ip),
    ]
}


def lookup(event_type: str) -> TaxonomyEntry:
    entry = TAXONOMY.get(event_type)
    if entry is None:
        raise UnknownEventTypeError(event_type)
    return entry


def known_event_types() -> List[str]:
    return sorted(TAXONOMY)
