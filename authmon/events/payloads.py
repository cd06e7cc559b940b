from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator

from authmon.utils.time import normalize_ts


class AuthEventPayload(BaseModel):
    """Fields every authentication event carries.

    Subclasses add the fields a given event type defines. Unknown keys are
    rejected so a payload must match the shape of its declared type.
    """

    model_config = ConfigDict(extra="forbid")

    userId: StrictStr = Field(min_length=1)
    timestamp: datetime
    ipAddress: StrictStr = Field(min_length=1)
    eventType: StrictStr
    success: StrictBool
    # stored in a 64-bit INTEGER column
    attempts: Optional[StrictInt] = Field(default=None, ge=0, le=2**63 - 1)
    queryType: Optional[StrictStr] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, v: Any) -> datetime:
        return normalize_ts(v)


class FailedLoginPayload(AuthEventPayload):
    pass


class LoginAttemptPayload(AuthEventPayload):
    pass


class UnusualPatternPayload(AuthEventPayload):
    pattern: Optional[StrictStr] = None


class PasswordChangePayload(AuthEventPayload):
    previousChange: Optional[StrictStr] = None


class AccountLockoutPayload(AuthEventPayload):
    lockoutDuration: Optional[StrictStr] = None


class SqlInjectionPayload(AuthEventPayload):
    query: Optional[StrictStr] = None


class RoleChangePayload(AuthEventPayload):
    currentRole: Optional[StrictStr] = None
    targetRole: Optional[StrictStr] = None


class SessionHijackingPayload(AuthEventPayload):
    sessionId: Optional[StrictStr] = None
    originalIP: Optional[StrictStr] = None
    hijackedIP: Optional[StrictStr] = None
    tokenHash: Optional[StrictStr] = None


class BruteForcePayload(AuthEventPayload):
    timeWindow: Optional[StrictStr] = None
    targetEndpoint: Optional[StrictStr] = None
    toolSignature: Optional[StrictStr] = None


class SuspiciousIpPayload(AuthEventPayload):
    country: Optional[StrictStr] = None
    vpnDetected: Optional[StrictBool] = None
    threatScore: Optional[float] = Field(default=None, ge=0)
