# app/errors.py
"""
Error taxonomy for event ingestion.

Client-visible:  ValidationError, PayloadTooLarge, StorageError, PersistenceError, NotFound
Internal only:   TranscodeUnavailable, TranscodeFailed, NotificationError
"""


class EventServiceError(Exception):
    """Base class for every error raised by the event service."""


class ValidationError(EventServiceError):
    """A required field (name, video, image) is missing or empty."""


class PayloadTooLarge(EventServiceError):
    """The upload exceeds MAX_UPLOAD_BYTES."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"payload of {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class StorageError(EventServiceError):
    """Media could not be written to the data directory."""


class PersistenceError(EventServiceError):
    """The event row could not be written to or read from the database."""


class NotFound(EventServiceError):
    """No event exists with the requested id."""

    def __init__(self, event_id: int):
        super().__init__(f"event {event_id} not found")
        self.event_id = event_id


class TranscodeError(EventServiceError):
    """Base for best-effort transcode failures. Never reaches the client."""


class TranscodeUnavailable(TranscodeError):
    """Transcoding is disabled or the encoder binary is not installed."""


class TranscodeFailed(TranscodeError):
    """The encoder ran but did not produce a usable file."""


class NotificationError(EventServiceError):
    """The SMS could not be sent. Always logged and swallowed."""
