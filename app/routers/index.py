# app/routers/index.py
"""HTML index — the most recent events, newest first."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from app.context import AppContext, get_context

router = APIRouter()


@router.get("/", response_class=HTMLResponse, summary="Recent events page")
def index(request: Request, ctx: AppContext = Depends(get_context)):
    events = ctx.events.list_recent(ctx.settings.INDEX_LIMIT)
    return ctx.templates.TemplateResponse(
        request,
        "index.html",
        {"events": events, "media_url": ctx.media.url_for},
    )
