# app/routers/events.py
"""
Read-only JSON view of recorded events.
GET /events       — newest first, bounded by limit.
GET /events/{id}  — a single event, 404 if unknown.
"""

from fastapi import APIRouter, Depends, Query

from app.context import AppContext, get_context
from app.schemas.event import EventOut

router = APIRouter()


@router.get("/events", response_model=list[EventOut], summary="List recent events")
def list_events(limit: int = Query(50, ge=1, le=500), ctx: AppContext = Depends(get_context)):
    return ctx.events.list_recent(limit)


@router.get("/events/{event_id}", response_model=EventOut, summary="Get one event")
def get_event(event_id: int, ctx: AppContext = Depends(get_context)):
    return ctx.events.get_by_id(event_id)
