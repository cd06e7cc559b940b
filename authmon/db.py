from __future__ import annotations

import json
import logging
from datetime import datetime
from functools import lru_cache
from typing import Iterator, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, SQLModel, Session, create_engine, select

from authmon.config import get_config
from authmon.errors import PersistenceError
from authmon.events.normalize import SecurityEvent
from authmon.utils.time import to_iso_utc, utc_now

logger = logging.getLogger(__name__)


class SecurityEventRow(SQLModel, table=True):
    """One received authentication event. Duplicates are stored as separate rows."""

    id: Optional[int] = Field(default=None, primary_key=True)
    event_type: str = Field(index=True)
    user_id: str = Field(index=True)
    ip_address: str = Field(index=True)
    timestamp: datetime = Field(index=True)
    received_at: datetime = Field(index=True)
    success: bool
    attempts: Optional[int] = Field(default=None)
    query_type: Optional[str] = Field(default=None)
    severity: Optional[str] = Field(default=None)  # alert_severity configured by the caller
    fields_json: str = Field(default="{}")


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, echo=False, **kwargs)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return make_engine(get_config().database_url)


def init_db(engine: Optional[Engine] = None) -> None:
    SQLModel.metadata.create_all(engine or get_engine())


def get_session() -> Iterator[Session]:
    with Session(get_engine()) as session:
        yield session


def persist_event(session: Session, event: SecurityEvent, severity: Optional[str] = None) -> int:
    """Write one event as a single committed row and return its id."""
    row = SecurityEventRow(
        event_type=event.event_type,
        user_id=event.user_id,
        ip_address=event.ip_address,
        timestamp=event.timestamp,
        received_at=utc_now(),
        success=event.success,
        attempts=event.attempts,
        query_type=event.query,
        severity=severity,
        fields_json=json.dumps(event.fields, default=str),
    )
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
    except (SQLAlchemyError, OverflowError) as e:
        session.rollback()
        logger.error("Failed to persist %s event for user=%s: %s", event.event_type, event.user_id, e)
        raise PersistenceError() from e
    logger.info("Event saved with id=%s type=%s", row.id, row.event_type)
    return row.id


def recent_events(
    session: Session,
    limit: int = 50,
    user_id: Optional[str] = None,
    event_type: Optional[str] = None,
) -> List[SecurityEventRow]:
    stmt = select(SecurityEventRow)
    if user_id:
        stmt = stmt.where(SecurityEventRow.user_id == user_id)
    if event_type:
        stmt = stmt.where(SecurityEventRow.event_type == event_type)
    stmt = stmt.order_by(SecurityEventRow.received_at.desc(), SecurityEventRow.id.desc()).limit(limit)
    try:
        return list(session.exec(stmt).all())
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to read events") from e


def row_to_dict(r: SecurityEventRow) -> dict:
    return {
        "id": r.id,
        "event_type": r.event_type,
        "user_id": r.user_id,
        "ip_address": r.ip_address,
        "timestamp": to_iso_utc(r.timestamp),
        "received_at": to_iso_utc(r.received_at),
        "success": r.success,
        "attempts": r.attempts,
        "severity": r.severity,
        "fields": json.loads(r.fields_json),
    }
