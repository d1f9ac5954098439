import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON
from shotdeck.db import Base


class Movie(Base):
    __tablename__ = "movies"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    director = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    runtime_minutes = Column(Integer, nullable=False)
    cover_image_key = Column(String, nullable=True)
    links = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
