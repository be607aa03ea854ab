# tests/test_ingestion_pipeline.py
"""Unit tests for the ingestion pipeline (real stores, mocked side effects)."""

import io
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from app.errors import (
    NotificationError,
    PayloadTooLarge,
    PersistenceError,
    StorageError,
    TranscodeFailed,
    TranscodeUnavailable,
    ValidationError,
)
from app.services.ingestion import IngestionPipeline, IngestRequest, UploadPart
from app.services.media_store import MediaStore
from app.services.notifier import TwilioNotifier


def make_request(name="motion-1", video=b"avi-bytes", image=b"jpg-bytes",
                 video_name="clip.avi", image_name="still.jpg", payload_size=None):
    return IngestRequest(
        name=name,
        video=UploadPart(video_name, io.BytesIO(video)) if video is not None else None,
        image=UploadPart(image_name, io.BytesIO(image)) if image is not None else None,
        payload_size=payload_size,
    )


def stored_files(media):
    if not os.path.exists(media.data_dir):
        return []
    return sorted(os.listdir(media.data_dir))


@pytest.fixture
def transcoder():
    transcoder = MagicMock()
    transcoder.transcode.side_effect = TranscodeUnavailable("disabled")
    return transcoder


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def pipeline(media, repository, transcoder, notifier):
    return IngestionPipeline(media, repository, transcoder, notifier, max_upload_bytes=1024)


class TestCommit:
    def test_valid_upload_commits_one_event(self, pipeline, repository, media, notifier):
        event_id = pipeline.ingest(make_request())

        event = repository.get_by_id(event_id)
        assert repository.count() == 1
        assert event.name == "motion-1"
        assert open(event.video, "rb").read() == b"avi-bytes"
        assert open(event.image, "rb").read() == b"jpg-bytes"
        assert os.path.dirname(event.video) == media.data_dir

        notifier.notify.assert_called_once()
        assert notifier.notify.call_args.args[0].id == event_id

    def test_each_upload_gets_a_higher_id(self, pipeline):
        ids = [pipeline.ingest(make_request(name=f"motion-{i}")) for i in range(3)]
        assert ids[0] < ids[1] < ids[2]

    def test_name_is_trimmed(self, pipeline, repository):
        event_id = pipeline.ingest(make_request(name="  porch  "))
        assert repository.get_by_id(event_id).name == "porch"


class TestRejection:
    @pytest.mark.parametrize("missing", [
        {"name": None},
        {"name": "   "},
        {"video": None},
        {"image": None},
        {"video_name": ""},
        {"image_name": None},
    ])
    def test_missing_field_writes_nothing(self, pipeline, repository, media, notifier, missing):
        with pytest.raises(ValidationError):
            pipeline.ingest(make_request(**missing))

        assert repository.count() == 0
        assert stored_files(media) == []
        notifier.notify.assert_not_called()

    def test_image_write_failure_removes_video(self, repository, transcoder, notifier, tmp_path):
        class FailingImageStore(MediaStore):
            def save(self, stream, destination_name):
                if destination_name.endswith(".jpg"):
                    raise StorageError("disk full")
                return super().save(stream, destination_name)

        media = FailingImageStore(str(tmp_path / "data"))
        pipeline = IngestionPipeline(media, repository, transcoder, notifier)

        with pytest.raises(StorageError):
            pipeline.ingest(make_request())
        assert repository.count() == 0
        assert stored_files(media) == []

    def test_persistence_failure_removes_media(self, media, transcoder, notifier):
        events = MagicMock()
        events.insert.side_effect = PersistenceError("database is locked")
        pipeline = IngestionPipeline(media, events, transcoder, notifier)

        with pytest.raises(PersistenceError):
            pipeline.ingest(make_request())
        assert stored_files(media) == []
        notifier.notify.assert_not_called()


class TestPayloadCap:
    def test_parts_exactly_at_cap_succeed(self, pipeline, repository):
        pipeline.ingest(make_request(video=b"v" * 1000, image=b"i" * 24))
        assert repository.count() == 1

    def test_one_byte_over_cap_writes_nothing(self, pipeline, repository, media):
        with pytest.raises(PayloadTooLarge):
            pipeline.ingest(make_request(video=b"v" * 1000, image=b"i" * 25))
        assert repository.count() == 0
        assert stored_files(media) == []

    def test_declared_size_is_checked(self, pipeline, repository, media):
        pipeline.ingest(make_request(payload_size=1024))
        with pytest.raises(PayloadTooLarge):
            pipeline.ingest(make_request(payload_size=1025))
        assert repository.count() == 1
        assert len(stored_files(media)) == 2


class TestBestEffortSteps:
    def test_transcode_failure_keeps_original(self, pipeline, repository, transcoder):
        transcoder.transcode.side_effect = TranscodeFailed("Invalid data found when processing input")

        event = repository.get_by_id(pipeline.ingest(make_request()))

        assert event.video.endswith("_clip.avi")
        assert transcoder.transcode.call_args.args[0] == event.video
        assert open(event.video, "rb").read() == b"avi-bytes"

    def test_transcode_success_swaps_path_and_removes_original(self, pipeline, repository, media, transcoder):
        def transcode(source):
            target = source[:-4] + ".mp4"
            with open(target, "wb") as f:
                f.write(b"mp4-bytes")
            return target
        transcoder.transcode.side_effect = transcode

        event = repository.get_by_id(pipeline.ingest(make_request()))

        assert event.video.endswith("_clip.mp4")
        assert open(event.video, "rb").read() == b"mp4-bytes"
        assert not any(f.endswith(".avi") for f in stored_files(media))

    def test_no_transcoder_configured(self, media, repository):
        pipeline = IngestionPipeline(media, repository)
        event = repository.get_by_id(pipeline.ingest(make_request()))
        assert event.video.endswith("_clip.avi")

    def test_notification_failure_does_not_fail_ingest(self, pipeline, repository, notifier):
        notifier.notify.side_effect = NotificationError("SMS credentials not configured")

        event_id = pipeline.ingest(make_request())
        assert repository.get_by_id(event_id).name == "motion-1"

    def test_unexpected_notifier_crash_does_not_fail_ingest(self, pipeline, repository, notifier):
        notifier.notify.side_effect = RuntimeError("boom")

        event_id = pipeline.ingest(make_request())
        assert repository.get_by_id(event_id).name == "motion-1"
        assert repository.count() == 1

    def test_bad_sms_api_url_does_not_fail_ingest(self, media, repository, transcoder):
        notifier = TwilioNotifier("AC123", "secret", "+15550001", "+15550002",
                                  api_url="https://api.twilio.com:notaport")
        pipeline = IngestionPipeline(media, repository, transcoder, notifier)

        event_id = pipeline.ingest(make_request())
        assert repository.get_by_id(event_id).id == event_id

    def test_transcoder_reporting_missing_file_keeps_original(self, pipeline, repository, media, transcoder):
        transcoder.transcode.side_effect = lambda source: source[:-4] + ".mp4"

        event = repository.get_by_id(pipeline.ingest(make_request()))

        assert event.video.endswith("_clip.avi")
        assert media.exists(event.video)


class TestCompleteness:
    def test_media_vanishing_before_commit_is_rejected(self, repository, transcoder, notifier, tmp_path):
        class VanishingImageStore(MediaStore):
            def save(self, stream, destination_name):
                path = super().save(stream, destination_name)
                if destination_name.endswith(".jpg"):
                    os.remove(path)
                return path

        media = VanishingImageStore(str(tmp_path / "data"))
        pipeline = IngestionPipeline(media, repository, transcoder, notifier)

        with pytest.raises(ValidationError):
            pipeline.ingest(make_request())
        assert repository.count() == 0
        assert stored_files(media) == []
        notifier.notify.assert_not_called()


class TestConcurrentIngest:
    def test_parallel_uploads_commit_independently(self, pipeline, repository, media):
        def upload(i):
            return pipeline.ingest(make_request(name=f"motion-{i}", video=f"video-{i}".encode(),
                                                image=f"image-{i}".encode()))

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(upload, range(16)))

        assert len(set(ids)) == 16
        assert repository.count() == 16
        assert len(stored_files(media)) == 32
        for event_id in ids:
            event = repository.get_by_id(event_id)
            i = event.name.split("-")[1]
            assert open(event.video, "rb").read() == f"video-{i}".encode()
            assert open(event.image, "rb").read() == f"image-{i}".encode()
