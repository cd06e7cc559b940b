"""Tests for settings validation: required fields, types, bounds."""

import pytest

from authmon.errors import ValidationError
from authmon.schemas import AlertSettings, validate_settings

from conftest import settings


REQUIRED = ["auth_key", "alert_threshold", "time_window", "alert_severity", "alert_admins", "monitored_events"]


class TestValidSettings:
    def test_snake_case_settings_pass(self):
        s = validate_settings(settings())
        assert isinstance(s, AlertSettings)
        assert s.alert_threshold == 5
        assert s.time_window_minutes == 15
        assert s.alert_severity == "High"

    def test_camel_case_settings_pass(self):
        s = validate_settings({
            "authKey": "k",
            "alertThreshold": 1,
            "timeWindowMinutes": 0,
            "alertSeverity": "Critical",
            "alertAdmins": ["Security-Admin"],
            "monitoredEvents": ["account_lockout"],
        })
        assert s.monitors("account_lockout")
        assert not s.monitors("failed_login")

    def test_legacy_connection_string_is_ignored(self):
        s = validate_settings(settings(db_connection_string="mongodb://localhost/test"))
        assert not hasattr(s, "db_connection_string")

    def test_zero_time_window_allowed(self):
        assert validate_settings(settings(time_window=0)).time_window_minutes == 0


class TestInvalidSettings:
    @pytest.mark.parametrize("missing", REQUIRED)
    def test_missing_field_is_named(self, missing):
        raw = settings()
        del raw[missing]
        with pytest.raises(ValidationError) as exc:
            validate_settings(raw)
        assert exc.value.status_code == 400
        assert any(missing in f for f in exc.value.fields)

    def test_every_bad_field_reported(self):
        with pytest.raises(ValidationError) as exc:
            validate_settings({"auth_key": "", "alert_threshold": 0})
        fields = " ".join(exc.value.fields)
        for name in REQUIRED:
            assert name in fields

    @pytest.mark.parametrize("overrides", [
        {"alert_threshold": 0},
        {"alert_threshold": "5"},
        {"alert_threshold": 2.5},
        {"time_window": -1},
        {"alert_severity": "Severe"},
        {"alert_severity": "high"},
        {"alert_admins": []},
        {"alert_admins": "DevOps-Lead"},
        {"monitored_events": []},
        {"auth_key": ""},
        {"auth_key": 1234},
    ])
    def test_bad_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            validate_settings(settings(**overrides))

    @pytest.mark.parametrize("raw", [None, "settings", ["auth_key"]])
    def test_non_object_rejected(self, raw):
        with pytest.raises(ValidationError) as exc:
            validate_settings(raw)
        assert exc.value.fields == ["settings"]

    def test_error_body_is_structured(self):
        with pytest.raises(ValidationError) as exc:
            validate_settings(settings(alert_threshold=0))
        body = exc.value.to_body()
        assert body["error"] == "Invalid settings configuration"
        assert body["details"][0]["field"] == "settings.alert_threshold"
