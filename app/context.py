# app/context.py
"""
Application context — everything a request handler needs, built once at
startup from Settings and handed to handlers through app.state.
"""

from dataclasses import dataclass

from fastapi import Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.config import Settings
from app.database import create_tables, make_engine, make_session_factory
from app.services.event_store import EventRepository
from app.services.ingestion import IngestionPipeline
from app.services.media_store import MediaStore
from app.services.notifier import TwilioNotifier
from app.services.transcoder import FFmpegTranscoder


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    events: EventRepository
    media: MediaStore
    transcoder: FFmpegTranscoder
    notifier: TwilioNotifier
    pipeline: IngestionPipeline
    templates: Jinja2Templates

    def close(self):
        self.engine.dispose()


def build_context(settings: Settings) -> AppContext:
    """Open the store, create the schema and data directory, wire the services."""
    engine = make_engine(settings.DATABASE_URL)
    create_tables(engine)
    session_factory = make_session_factory(engine)

    media = MediaStore(settings.DATA_DIR)
    media.ensure_dir()

    events = EventRepository(session_factory)
    transcoder = FFmpegTranscoder(
        binary=settings.FFMPEG_BINARY,
        enabled=settings.TRANSCODE_ENABLED,
        video_codec=settings.FFMPEG_VIDEO_CODEC,
        crf=settings.FFMPEG_CRF,
        scale=settings.FFMPEG_SCALE,
        timeout=settings.FFMPEG_TIMEOUT_SECONDS,
    )
    notifier = TwilioNotifier(
        sid=settings.TWILIO_SID,
        token=settings.TWILIO_TOKEN,
        from_number=settings.TWILIO_FROM,
        to_number=settings.TWILIO_TO,
        api_url=settings.TWILIO_API_URL,
        timeout=settings.NOTIFY_TIMEOUT_SECONDS,
    )
    pipeline = IngestionPipeline(
        media=media,
        events=events,
        transcoder=transcoder,
        notifier=notifier,
        max_upload_bytes=settings.MAX_UPLOAD_BYTES,
    )

    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        events=events,
        media=media,
        transcoder=transcoder,
        notifier=notifier,
        pipeline=pipeline,
        templates=Jinja2Templates(directory=settings.TEMPLATE_DIR),
    )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency — the context of the app serving this request."""
    return request.app.state.context
