from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from authmon.errors import ValidationError

if TYPE_CHECKING:
    from authmon.detection.taxonomy import TaxonomyEntry


_COMMON_FIELDS = ("userId", "timestamp", "ipAddress", "eventType", "success", "attempts")


@dataclass(frozen=True)
class SecurityEvent:
    """Canonical event used by the rest of the pipeline."""

    event_type: str
    user_id: str
    timestamp: datetime
    ip_address: str
    success: bool
    attempts: Optional[int]
    fields: Dict[str, Any]

    @property
    def query(self) -> Optional[str]:
        return self.fields.get("queryType") or self.fields.get("query")


def pydantic_details(err: PydanticValidationError, prefix: str = "") -> List[Dict[str, Any]]:
    out = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        out.append({"field": f"{prefix}{loc}" if loc else prefix.rstrip("."), "message": e.get("msg", "invalid")})
    return out


def parse_event(entry: "TaxonomyEntry", payload: Dict[str, Any]) -> SecurityEvent:
    """Validate a raw payload against its event type's shape and normalize it."""
    raw = dict(payload)
    declared = raw.setdefault("eventType", entry.event_type)
    if declared != entry.event_type:
        raise ValidationError(
            "Payload does not match event type",
            details=[{"field": "payload.eventType", "message": f"expected '{entry.event_type}', got '{declared}'"}],
        )

    try:
        model = entry.payload_model.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError("Invalid payload", details=pydantic_details(e, "payload.")) from e

    extra = {
        k: v
        for k, v in model.model_dump(exclude_none=True).items()
        if k not in _COMMON_FIELDS
    }
    return SecurityEvent(
        event_type=entry.event_type,
        user_id=model.userId,
        timestamp=model.timestamp,
        ip_address=model.ipAddress,
        success=model.success,
        attempts=model.attempts,
        fields=extra,
    )
