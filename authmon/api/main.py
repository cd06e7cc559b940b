from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlmodel import Session

from authmon.alerts.dispatch import AlertDispatcher
from authmon.alerts.format import format_alert
from authmon.config import ServiceConfig, configure_logging, get_config
from authmon.db import get_session, init_db, persist_event, recent_events, row_to_dict
from authmon.detection.classify import Classifier
from authmon.detection.taxonomy import lookup
from authmon.errors import AuthMonitorError, ConfigurationError, RateLimitError
from authmon.events.normalize import parse_event
from authmon.runtime.ratelimit import FixedWindowRateLimiter
from authmon.runtime.state import STATE
from authmon.schemas import HealthResponse, StatusResponse, StoredEvent, WebhookRequest, validate_settings
from authmon.utils.time import to_iso_utc, utc_now

logger = logging.getLogger(__name__)

_INTEGRATION_SPEC = Path(__file__).with_name("integration.json")

# Paths that never touch the limiter.
BYPASS_PATHS = frozenset({"/health"})


app = FastAPI(title="Auth Monitor Service", version="0.1.0")


@app.on_event("startup")
def _startup() -> None:
    config = get_config()
    configure_logging(config.log_level)
    if not config.auth_key:
        raise ConfigurationError("AUTHMON_AUTH_KEY is not set")
    if not config.webhook_url:
        logger.warning("AUTHMON_WEBHOOK_URL is not set; suspicious events will fail with 500")
    init_db()
    get_limiter()
    logger.info("Auth Monitor started; integration spec at /integrationspec")


_limiter_lock = threading.Lock()


def get_limiter() -> FixedWindowRateLimiter:
    limiter = STATE.limiter
    if limiter is None:
        with _limiter_lock:
            if STATE.limiter is None:
                STATE.limiter = FixedWindowRateLimiter.from_config(get_config())
            limiter = STATE.limiter
    return limiter


def get_classifier() -> Classifier:
    return Classifier(STATE.last_seen)


def get_dispatcher(config: ServiceConfig = Depends(get_config)) -> AlertDispatcher:
    return AlertDispatcher.from_config(config)


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _bypasses_limiter(request: Request, config: ServiceConfig) -> bool:
    if request.url.path in BYPASS_PATHS:
        return True
    token = config.rate_limit_bypass_token
    return bool(token) and request.headers.get(config.rate_limit_bypass_header) == token


@app.middleware("http")
async def rate_limit(request: Request, call_next):
    config = get_config()
    if _bypasses_limiter(request, config):
        return await call_next(request)

    key = _client_key(request)
    allowed, retry_after = get_limiter().hit(key)
    if not allowed:
        err = RateLimitError(retry_after)
        logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
        return JSONResponse(
            status_code=err.status_code,
            content=err.to_body(),
            headers={"Retry-After": str(err.retry_after)},
        )
    return await call_next(request)


@app.exception_handler(AuthMonitorError)
def _auth_monitor_error(request: Request, exc: AuthMonitorError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.error)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg", "invalid")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Missing required fields", "details": details})


@app.exception_handler(Exception)
def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
def root() -> Dict[str, Any]:
    return {"status": "ok", "message": "Auth Monitor Service"}


@app.get("/health", response_model=HealthResponse)
def health() -> Dict[str, Any]:
    return {"status": "ok", "uptime": STATE.uptime(), "timestamp": to_iso_utc(utc_now())}


@app.get("/integrationspec")
def integration_spec() -> Dict[str, Any]:
    logger.debug("Serving integration spec")
    return json.loads(_INTEGRATION_SPEC.read_text(encoding="utf-8"))


@app.post("/webhook", response_model=StatusResponse)
def webhook(
    req: WebhookRequest,
    db: Session = Depends(get_session),
    classifier: Classifier = Depends(get_classifier),
    dispatcher: AlertDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    settings = validate_settings(req.settings)
    logger.info("Received webhook event: %s", req.event_type)

    if not settings.monitors(req.event_type):
        logger.info("Skipping unmonitored event type: %s", req.event_type)
        return {"status": "skipped"}

    entry = lookup(req.event_type)
    event = parse_event(entry, req.payload)

    event_id = persist_event(db, event, settings.alert_severity)

    verdict = classifier.classify(event, threshold=settings.alert_threshold)
    if not verdict.suspicious:
        logger.info("Event %s (%s) not suspicious; no alert", event_id, event.event_type)
        return {"status": "processed"}

    logger.info("Event %s (%s) matched rule %s", event_id, event.event_type, verdict.rule)
    message = format_alert(event, settings, entry, verdict.rule)
    dispatcher.send(message)
    return {"status": "processed"}


@app.get("/events", response_model=List[StoredEvent])
def list_events(
    limit: int = Query(50, ge=1, le=500),
    user_id: Optional[str] = None,
    event_type: Optional[str] = None,
    db: Session = Depends(get_session),
) -> List[Dict[str, Any]]:
    return [row_to_dict(r) for r in recent_events(db, limit=limit, user_id=user_id, event_type=event_type)]
