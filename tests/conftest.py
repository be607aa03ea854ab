# tests/conftest.py
"""Shared fixtures — every test gets its own database file and data directory."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from app.config import Settings
from app.database import create_tables, make_engine, make_session_factory
from app.services.event_store import EventRepository
from app.services.media_store import MediaStore

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "..", "tmpl")


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'events.db'}",
        DATA_DIR=str(tmp_path / "data"),
        TEMPLATE_DIR=TEMPLATE_DIR,
        TRANSCODE_ENABLED=False,
        TWILIO_SID=None,
        TWILIO_TOKEN=None,
        TWILIO_FROM=None,
        TWILIO_TO=None,
        LOG_DIR="",
    )


@pytest.fixture
def engine(test_settings):
    engine = make_engine(test_settings.DATABASE_URL)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return EventRepository(make_session_factory(engine))


@pytest.fixture
def media(test_settings):
    return MediaStore(test_settings.DATA_DIR)
