# Motion Event Recorder — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.event import Event  # noqa
