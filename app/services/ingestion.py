# app/services/ingestion.py
"""
Ingestion pipeline — turns one sensor upload into one committed event.

    receive → validate → persist media → transcode → complete? → commit → notify

Fields are validated before any byte is written. Once media is on disk, every
rejection removes it again, so a file is either referenced by a committed
event or gone. Transcode and notify are best-effort: their errors are logged
and never change the outcome.
"""

import os
from dataclasses import dataclass
from typing import BinaryIO, Optional

from app.errors import (
    NotFound,
    NotificationError,
    PayloadTooLarge,
    PersistenceError,
    StorageError,
    TranscodeError,
    TranscodeUnavailable,
    ValidationError,
)
from app.services.event_store import EventRepository, NewEvent
from app.services.media_store import MediaStore
from app.services.notifier import TwilioNotifier
from app.services.transcoder import FFmpegTranscoder
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class UploadPart:
    filename: Optional[str]
    stream: BinaryIO
    size: Optional[int] = None


@dataclass
class IngestRequest:
    name: Optional[str]
    video: Optional[UploadPart]
    image: Optional[UploadPart]
    payload_size: Optional[int] = None   # declared Content-Length, when known


def _part_size(part: Optional[UploadPart]) -> int:
    if part is None:
        return 0
    if part.size is not None:
        return part.size
    try:
        pos = part.stream.tell()
        end = part.stream.seek(0, os.SEEK_END)
        part.stream.seek(pos)
        return end - pos
    except (AttributeError, OSError):
        return 0


class IngestionPipeline:
    def __init__(
        self,
        media: MediaStore,
        events: EventRepository,
        transcoder: Optional[FFmpegTranscoder] = None,
        notifier: Optional[TwilioNotifier] = None,
        max_upload_bytes: int = 104857600,
    ):
        self.media = media
        self.events = events
        self.transcoder = transcoder
        self.notifier = notifier
        self.max_upload_bytes = max_upload_bytes

    def check_size(self, size: int):
        if size > self.max_upload_bytes:
            raise PayloadTooLarge(size, self.max_upload_bytes)

    def ingest(self, request: IngestRequest) -> int:
        """Run the whole pipeline. Returns the committed event id."""
        # 1. Receive
        size = request.payload_size
        if size is None:
            size = _part_size(request.video) + _part_size(request.image)
        self.check_size(size)

        # 2. Extract / validate
        name = (request.name or "").strip()
        missing = [field for field, ok in (
            ("name", bool(name)),
            ("video", request.video is not None and bool(request.video.filename)),
            ("image", request.image is not None and bool(request.image.filename)),
        ) if not ok]
        if missing:
            raise ValidationError(f"missing required fields: {', '.join(missing)}")

        # 3. Persist media
        written = []
        try:
            video_path = self.media.save(request.video.stream, request.video.filename)
            written.append(video_path)
            image_path = self.media.save(request.image.stream, request.image.filename)
            written.append(image_path)
        except StorageError:
            self._discard(written)
            raise

        # 4. Transcode (optional)
        video_path = self._transcode(video_path)
        written[0] = video_path

        # 5. Completeness — both paths must still point at stored files
        if not (name and video_path and image_path
                and self.media.exists(video_path) and self.media.exists(image_path)):
            self._discard(written)
            raise ValidationError("event incomplete after media persistence")

        # 6. Commit
        try:
            event_id = self.events.insert(NewEvent(name=name, video=video_path, image=image_path))
        except PersistenceError:
            self._discard(written)
            raise

        # 7. Notify
        self._notify(event_id)
        return event_id

    def _transcode(self, video_path: str) -> str:
        if self.transcoder is None:
            return video_path
        try:
            new_path = self.transcoder.transcode(video_path)
        except TranscodeUnavailable as e:
            logger.warning(f"[INGEST] Transcode skipped for {os.path.basename(video_path)}: {e}")
            return video_path
        except TranscodeError as e:
            logger.warning(f"[INGEST] Transcode failed for {os.path.basename(video_path)}, keeping original: {e}")
            return video_path

        if not self.media.exists(new_path):
            logger.warning(f"[INGEST] Transcoder reported {new_path} but no file exists, keeping original")
            return video_path
        if new_path != video_path:
            self.media.remove(video_path)
        return new_path

    def _notify(self, event_id: int):
        if self.notifier is None:
            return
        try:
            event = self.events.get_by_id(event_id)
            self.notifier.notify(event)
        except (NotificationError, NotFound, PersistenceError) as e:
            logger.error(f"[INGEST] Notification for event {event_id} failed: {e}")
        except Exception as e:
            logger.error(f"[INGEST] Notification for event {event_id} crashed: {e}", exc_info=True)

    def _discard(self, paths: list[str]):
        for path in paths:
            self.media.remove(path)
