# app/schemas/event.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class EventOut(BaseModel):
    id: int
    name: str
    time: Optional[datetime]
    video: str
    image: str

    class Config:
        from_attributes = True
