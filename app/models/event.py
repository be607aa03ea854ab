# app/models/event.py
"""
Motion events table.
One row per committed motion event: the sensor-supplied name, the capture
time, and the paths of the stored video and still image.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Text, func
from app.database import Base


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_events_name_not_empty"),
        CheckConstraint("length(video) > 0", name="ck_events_video_not_empty"),
        CheckConstraint("length(image) > 0", name="ck_events_image_not_empty"),
        {"sqlite_autoincrement": True},   # ids are never reused
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    time = Column(DateTime, server_default=func.current_timestamp())
    video = Column(Text, nullable=False)
    image = Column(Text, nullable=False)

    def __repr__(self):
        return f"<Event {self.id} name={self.name} time={self.time}>"
