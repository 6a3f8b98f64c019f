from sqlalchemy import Column, String, DateTime, JSON, Integer
from sqlalchemy.sql import func
from slackify.db.session import TracksBase

class SearchRecord(TracksBase):
    """Search results kept for the lifetime of one Slack interaction."""
    __tablename__ = "searches"

    id = Column(Integer, primary_key=True)
    trigger_id = Column(String(255), nullable=False, unique=True)
    search_term = Column(String(1000))
    tracks = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class HistoryRecord(TracksBase):
    """Last time a track was queued from Slack, and by whom."""
    __tablename__ = "history"

    id = Column(Integer, primary_key=True)
    track_uri = Column(String(255), nullable=False, unique=True)
    name = Column(String(1000))
    artists = Column(String(1000))
    user_id = Column(String(255))
    added_at = Column(DateTime, nullable=False)


class SkipRecord(TracksBase):
    """Skip votes for the track that is currently playing."""
    __tablename__ = "skips"

    id = Column(Integer, primary_key=True)
    skip = Column(String(255), nullable=False, unique=True)  # track uri being voted on
    name = Column(String(1000))
    votes = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
