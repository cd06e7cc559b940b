from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from authmon.events.normalize import SecurityEvent


DEFAULT_FAILED_LOGIN_THRESHOLD = 5
RAPID_LOGIN_WINDOW_MS = 1000

SQL_INJECTION_SIGNATURES = ("union select", "drop table")
PRIVILEGE_EVENTS = ("permission_change", "privilege_escalation")
HIGH_RISK_EVENTS = ("account_lockout", "sql_injection_attempt", "unusual_pattern")


@dataclass(frozen=True)
class Classification:
    suspicious: bool
    rule: Optional[str] = None


NOT_SUSPICIOUS = Classification(False, None)


class LastSeenTracker:
    """Per-user timestamp of the most recent login attempt.

    `swap` is the only mutation: it stores the new timestamp and returns the
    previous one under a lock, so concurrent attempts for one user each see
    a distinct predecessor.
    """

    def __init__(self) -> None:
        self._last: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def swap(self, user_id: str, ts: datetime) -> Optional[datetime]:
        with self._lock:
            prev = self._last.get(user_id)
            self._last[user_id] = ts
            return prev

    def get(self, user_id: str) -> Optional[datetime]:
        with self._lock:
            return self._last.get(user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last)


@dataclass(frozen=True)
class _Context:
    event: SecurityEvent
    threshold: int
    previous_login: Optional[datetime]


def _failed_login_threshold(ctx: _Context) -> bool:
    e = ctx.event
    return e.event_type == "failed_login" and (e.attempts or 0) >= ctx.threshold


def _sql_injection_signature(ctx: _Context) -> bool:
    q = (ctx.event.query or "").lower()
    return any(sig in q for sig in SQL_INJECTION_SIGNATURES)


def _rapid_login_attempts(ctx: _Context) -> bool:
    if ctx.event.event_type != "login_attempt" or ctx.previous_login is None:
        return False
    delta_ms = abs((ctx.event.timestamp - ctx.previous_login).total_seconds()) * 1000.0
    return delta_ms < RAPID_LOGIN_WINDOW_MS


def _failed_privilege_change(ctx: _Context) -> bool:
    return ctx.event.event_type in PRIVILEGE_EVENTS and not ctx.event.success


def _high_risk_category(ctx: _Context) -> bool:
    return ctx.event.event_type in HIGH_RISK_EVENTS


# Evaluated in order; first match wins.
RULES: List[Tuple[str, Callable[[_Context], bool]]] = [
    ("failed_login_threshold", _failed_login_threshold),
    ("sql_injection_signature", _sql_injection_signature),
    ("rapid_login_attempts", _rapid_login_attempts),
    ("failed_privilege_change", _failed_privilege_change),
    ("high_risk_category", _high_risk_category),
]


class Classifier:
    def __init__(
        self,
        tracker: Optional[LastSeenTracker] = None,
        failed_login_threshold: int = DEFAULT_FAILED_LOGIN_THRESHOLD,
    ) -> None:
        self.tracker = tracker if tracker is not None else LastSeenTracker()
        self.failed_login_threshold = failed_login_threshold

    def classify(self, event: SecurityEvent, threshold: Optional[int] = None) -> Classification:
        """
        Decide whether a validated, monitored event should raise an alert.

        Every `login_attempt` records its timestamp in the tracker before the
        rules run, whichever rule ends up matching.

        Returns:
            Classification(suspicious, rule_id)
        """
        previous = None
        if event.event_type == "login_attempt":
            previous = self.tracker.swap(event.user_id, event.timestamp)

        ctx = _Context(
            event=event,
            threshold=threshold if threshold is not None else self.failed_login_threshold,
            previous_login=previous,
        )
        for rule_id, matches in RULES:
            if matches(ctx):
                return Classification(True, rule_id)
        return NOT_SUSPICIOUS
