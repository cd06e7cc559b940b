from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from authmon.errors import ValidationError
from authmon.events.normalize import pydantic_details


AlertSeverity = Literal["Critical", "High", "Medium", "Low"]


class WebhookRequest(BaseModel):
    event_type: StrictStr = Field(min_length=1)
    payload: Dict[str, Any]
    settings: Dict[str, Any]


class AlertSettings(BaseModel):
    """Per-request alerting configuration supplied by the calling integration."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    auth_key: StrictStr = Field(min_length=1, validation_alias=AliasChoices("auth_key", "authKey"))
    alert_threshold: StrictInt = Field(ge=1, validation_alias=AliasChoices("alert_threshold", "alertThreshold"))
    time_window_minutes: StrictInt = Field(
        ge=0,
        validation_alias=AliasChoices("time_window", "time_window_minutes", "timeWindow", "timeWindowMinutes"),
    )
    alert_severity: AlertSeverity = Field(validation_alias=AliasChoices("alert_severity", "alertSeverity"))
    alert_admins: List[StrictStr] = Field(min_length=1, validation_alias=AliasChoices("alert_admins", "alertAdmins"))
    monitored_events: List[StrictStr] = Field(
        min_length=1, validation_alias=AliasChoices("monitored_events", "monitoredEvents")
    )

    def monitors(self, event_type: str) -> bool:
        return event_type in self.monitored_events


def validate_settings(raw: Any) -> AlertSettings:
    """Validate a settings object; raise ValidationError naming every bad field."""
    if not isinstance(raw, dict):
        raise ValidationError(
            "Invalid settings configuration",
            details=[{"field": "settings", "message": "settings must be an object"}],
        )
    try:
        return AlertSettings.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError("Invalid settings configuration", details=pydantic_details(e, "settings.")) from e


class StatusResponse(BaseModel):
    status: Literal["processed", "skipped"]


class HealthResponse(BaseModel):
    status: str
    uptime: float
    timestamp: str


class StoredEvent(BaseModel):
    id: int
    event_type: str
    user_id: str
    ip_address: str
    timestamp: str
    received_at: str
    success: bool
    attempts: Optional[int] = None
    severity: Optional[str] = None
    fields: Dict[str, Any]
