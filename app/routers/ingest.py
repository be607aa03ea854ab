# app/routers/ingest.py
"""
Sensor upload endpoint.
POST /event/new — multipart form with name (text), video (file), image (file).
202 on commit, 406 on rejection, 413 when the payload is over the cap.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.types import Message, Receive

from app.context import AppContext, get_context
from app.errors import PayloadTooLarge
from app.services.ingestion import IngestRequest, UploadPart
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _as_part(value) -> UploadPart | None:
    if not isinstance(value, UploadFile):
        return None
    return UploadPart(filename=value.filename, stream=value.file, size=value.size)


def _declared_length(request: Request) -> int | None:
    try:
        return int(request.headers["content-length"])
    except (KeyError, ValueError):
        return None


def capped_receive(receive: Receive, limit: int) -> Receive:
    """Counts body bytes as they arrive and stops the read once they pass `limit`."""
    received = 0

    async def wrapped() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise PayloadTooLarge(received, limit)
        return message

    return wrapped


@router.post("/event/new", status_code=status.HTTP_202_ACCEPTED, summary="Sensor upload — records a motion event")
async def new_event(request: Request, ctx: AppContext = Depends(get_context)):
    """
    Parses the multipart body, then runs the ingestion pipeline in a worker
    thread. Errors are translated to status codes by the app's handlers.
    Chunked bodies without a Content-Length are bounded while they stream in.
    """
    bounded = Request(request.scope, receive=capped_receive(request.receive, ctx.settings.MAX_UPLOAD_BYTES))

    async with bounded.form(max_files=2) as form:
        name = form.get("name")
        upload = IngestRequest(
            name=name if isinstance(name, str) else None,
            video=_as_part(form.get("video")),
            image=_as_part(form.get("image")),
            payload_size=_declared_length(request),
        )
        logger.info(f"[INGEST] Upload from {request.client.host if request.client else '?'} "
                    f"name={upload.name!r} size={upload.payload_size}")
        event_id = await run_in_threadpool(ctx.pipeline.ingest, upload)

    return Response(
        status_code=status.HTTP_202_ACCEPTED,
        headers={"Location": f"/api/v1/events/{event_id}"},
    )
