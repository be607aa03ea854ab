# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Storage ───────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./events.db"
    DATA_DIR: str = "./data"
    TEMPLATE_DIR: str = "tmpl"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    # ── Ingestion ─────────────────────────────────────────────────────────
    MAX_UPLOAD_BYTES: int = 104857600   # 100 MB
    INDEX_LIMIT: int = 5

    # ── Transcoding (ffmpeg) ──────────────────────────────────────────────
    TRANSCODE_ENABLED: bool = True
    FFMPEG_BINARY: str = "ffmpeg"
    FFMPEG_VIDEO_CODEC: str = "libx264"
    FFMPEG_CRF: int = 21
    FFMPEG_SCALE: str = "w=320:h=240"
    FFMPEG_TIMEOUT_SECONDS: int = 300

    # ── SMS notification (Twilio) ─────────────────────────────────────────
    TWILIO_SID: Optional[str] = None
    TWILIO_TOKEN: Optional[str] = None
    TWILIO_FROM: Optional[str] = None
    TWILIO_TO: Optional[str] = None
    TWILIO_API_URL: str = "https://api.twilio.com"
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"   # Empty string disables the rotating log file

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
