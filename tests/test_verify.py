"""Tests for the deployment pre-flight checks."""

from unittest.mock import MagicMock, patch

import requests

from authmon.config import ServiceConfig
from authmon.verify import check_database, check_env, check_webhook, main, verify

from conftest import SINK_URL


def _config(**overrides):
    base = dict(database_url="sqlite://", webhook_url=SINK_URL, auth_key="test_key")
    base.update(overrides)
    return ServiceConfig(**base)


def test_env_names_missing_variables():
    ok, detail = check_env(_config(auth_key=None, webhook_url=None))
    assert not ok
    assert "AUTHMON_AUTH_KEY" in detail
    assert "AUTHMON_WEBHOOK_URL" in detail
    assert check_env(_config())[0]


def test_database_reachable():
    assert check_database(_config())[0]


def test_database_unreachable(tmp_path):
    ok, detail = check_database(_config(database_url=f"sqlite:///{tmp_path}/missing/dir/x.db"))
    assert not ok
    assert "database connection failed" in detail


def test_webhook_any_http_answer_is_reachable():
    http = MagicMock()
    http.get.return_value = MagicMock(status_code=405)
    ok, detail = check_webhook(_config(), http=http)
    assert ok
    assert "405" in detail
    assert http.get.call_args.kwargs["timeout"] == 5.0


def test_webhook_connection_error():
    http = MagicMock()
    http.get.side_effect = requests.ConnectionError("refused")
    assert not check_webhook(_config(), http=http)[0]


def test_verify_stops_at_first_failure():
    with patch("authmon.verify.requests.get") as get:
        assert not verify(_config(auth_key=None))
    get.assert_not_called()


def test_main_exit_codes(monkeypatch):
    monkeypatch.setenv("AUTHMON_AUTH_KEY", "test_key")
    monkeypatch.setenv("AUTHMON_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("AUTHMON_WEBHOOK_URL", SINK_URL)
    with patch("authmon.verify.requests.get") as get:
        get.return_value = MagicMock(status_code=200)
        assert main([]) == 0
        get.side_effect = requests.Timeout("slow")
        assert main([]) == 1
