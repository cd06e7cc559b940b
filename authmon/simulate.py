from __future__ import annotations

import argparse
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from authmon.detection.taxonomy import known_event_types
from authmon.io.ndjson import write_ndjson


@dataclass(frozen=True)
class SimConfig:
    seed: int = 7
    severity: str = "Critical"
    admins: List[str] = field(default_factory=lambda: ["Security-Admin"])
    auth_key: str = "test_key"
    event_types: Optional[List[str]] = None


ATTACKER_SUBNET = "45.227.253."
INTERNAL_SUBNET = "192.168.1."


def _payload(rng: random.Random, event_type: str, now_ms: int) -> Dict:
    base = {
        "userId": f"test@{event_type}.com",
        "timestamp": now_ms,
        "ipAddress": f"{INTERNAL_SUBNET}{rng.randint(2, 254)}",
        "eventType": event_type,
        "success": False,
        "attempts": 1,
    }
    if event_type == "failed_login":
        base["attempts"] = 6
    elif event_type == "login_attempt":
        base["attempts"] = 2
    elif event_type == "sql_injection_attempt":
        base["queryType"] = "SELECT * FROM users WHERE id = 1 UNION SELECT * FROM secrets"
    elif event_type in ("privilege_escalation", "permission_change"):
        base.update(currentRole="user", targetRole="admin")
    elif event_type == "unusual_pattern":
        base["pattern"] = "Login attempt from new country: Russia"
    elif event_type == "password_change":
        base.update(success=True, previousChange="30 days ago")
    elif event_type == "account_lockout":
        base.update(attempts=3, lockoutDuration="30 minutes")
    elif event_type == "session_hijacking":
        base.update(
            sessionId=f"sess_{rng.getrandbits(36):09x}",
            originalIP=f"{INTERNAL_SUBNET}100",
            hijackedIP=f"{ATTACKER_SUBNET}{rng.randint(2, 254)}",
            tokenHash=f"compromised_token_{now_ms}",
        )
    elif event_type == "brute_force":
        base.update(
            attempts=20,
            timeWindow="5 minutes",
            targetEndpoint="/api/login",
            toolSignature="Known botnet pattern",
        )
    elif event_type == "suspicious_ip":
        base.update(
            ipAddress=f"{ATTACKER_SUBNET}{rng.randint(2, 254)}",
            country="Unknown",
            vpnDetected=True,
            threatScore=85,
        )
    return base


def gen_requests(cfg: SimConfig, now_ms: Optional[int] = None) -> Iterable[Dict]:
    """One webhook request per event type, each monitored by its own settings."""
    rng = random.Random(cfg.seed)
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    types = cfg.event_types or known_event_types()
    for i, event_type in enumerate(types):
        yield {
            "event_type": event_type,
            # spaced >1s apart so per-user timing rules see distinct attempts
            "payload": _payload(rng, event_type, now_ms + i * 1500),
            "settings": {
                "auth_key": cfg.auth_key,
                "alert_threshold": 5,
                "time_window": 15,
                "alert_severity": cfg.severity,
                "alert_admins": list(cfg.admins),
                "monitored_events": [event_type],
            },
        }


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Generate sample webhook requests (NDJSON), one per event type.")
    p.add_argument("--out", required=True, help="Output file, e.g. data/events.ndjson")
    p.add_argument("--seed", type=int, default=7)
    p.add_argument("--severity", default="Critical", choices=["Critical", "High", "Medium", "Low"])
    p.add_argument("--admin", action="append", dest="admins", help="Admin to notify (repeatable)")
    p.add_argument("--auth-key", default="test_key")
    p.add_argument("--type", action="append", dest="types", choices=known_event_types(), help="Restrict to event type (repeatable)")
    args = p.parse_args(argv)

    cfg = SimConfig(
        seed=args.seed,
        severity=args.severity,
        admins=args.admins or ["Security-Admin"],
        auth_key=args.auth_key,
        event_types=args.types,
    )
    n = write_ndjson(Path(args.out), gen_requests(cfg))
    print(f"Wrote {n} webhook requests to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
