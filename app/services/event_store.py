# app/services/event_store.py
"""
Event record store — insert, fetch, and list motion events.

Each operation opens its own session. An insert is one transaction holding
one row, so readers see either the whole event or nothing, and SQLite's write
lock serialises concurrent inserts so ids are handed out strictly increasing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.errors import NotFound, PersistenceError
from app.models.event import Event
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class NewEvent:
    name: str
    video: str
    image: str
    time: Optional[datetime] = None   # None → database insert time


class EventRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def insert(self, new_event: NewEvent) -> int:
        row = Event(name=new_event.name, video=new_event.video, image=new_event.image)
        if new_event.time is not None:
            row.time = new_event.time

        db: Session = self.session_factory()
        try:
            db.add(row)
            db.commit()
            event_id = row.id
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[STORE] Insert failed for '{new_event.name}': {e}")
            raise PersistenceError(f"cannot insert event: {e}") from e
        finally:
            db.close()

        logger.info(f"[STORE] Created event {event_id} '{new_event.name}'")
        return event_id

    def get_by_id(self, event_id: int) -> Event:
        try:
            with self.session_factory() as db:
                event = db.get(Event, event_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"cannot read event {event_id}: {e}") from e
        if event is None:
            raise NotFound(event_id)
        return event

    def list_recent(self, limit: int) -> list[Event]:
        """Newest first by id. Insertion order, not wall-clock, decides."""
        if limit <= 0:
            return []
        try:
            with self.session_factory() as db:
                return list(db.scalars(select(Event).order_by(Event.id.desc()).limit(limit)))
        except SQLAlchemyError as e:
            raise PersistenceError(f"cannot list events: {e}") from e

    def count(self) -> int:
        try:
            with self.session_factory() as db:
                return db.scalar(select(func.count(Event.id)))
        except SQLAlchemyError as e:
            raise PersistenceError(f"cannot count events: {e}") from e
