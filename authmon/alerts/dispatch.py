"""Synchronous delivery of alert messages to the notification channel webhook.

One POST per alert, bounded by a timeout.  Anything other than a 2xx answer
is a failure for the caller to surface; nothing is retried or queued here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from authmon.alerts.format import AlertMessage
from authmon.config import ServiceConfig
from authmon.errors import ConfigurationError, DispatchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class AlertDispatcher:
    def __init__(
        self,
        webhook_url: Optional[str],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        username: str = "Security Monitor",
        session: Optional[requests.Session] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.username = username
        self._http = session or requests

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "AlertDispatcher":
        return cls(config.webhook_url, timeout=config.dispatch_timeout_seconds)

    def build_payload(self, message: AlertMessage) -> Dict[str, Any]:
        return {
            "event_name": message.event_name,
            "message": message.body,
            "status": message.channel_status,
            "username": self.username,
            "metadata": message.metadata,
        }

    def send(self, message: AlertMessage) -> int:
        """POST the alert; return the sink's status code or raise DispatchError."""
        if not self.webhook_url:
            raise ConfigurationError("Webhook URL not configured")

        payload = self.build_payload(message)
        try:
            r = self._http.post(
                self.webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error("Alert dispatch timed out after %.1fs: %s", self.timeout, e)
            raise DispatchError(f"timeout after {self.timeout}s") from e
        except requests.RequestException as e:
            logger.error("Alert dispatch failed: %s", e)
            raise DispatchError(str(e)) from e

        if not 200 <= r.status_code < 300:
            logger.error("Notification sink rejected alert: HTTP %s", r.status_code)
            raise DispatchError(f"HTTP {r.status_code}", status=r.status_code)

        logger.info("Alert sent to channel (%s): %s", r.status_code, message.title)
        return r.status_code
