from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func
from slackify.db.session import ConfigBase

class AuthRecord(ConfigBase):
    """The single Spotify credential record of the workspace."""
    __tablename__ = "auth"

    id = Column(Integer, primary_key=True)

    # Token data
    access_token = Column(String(2000))
    refresh_token = Column(String(2000))
    expires = Column(DateTime)

    # Pending authentication request
    trigger_id = Column(String(255))
    trigger_expires = Column(DateTime)
    channel_id = Column(String(255))
    team_id = Column(String(255))
    response_url = Column(String(2000))
    redirect_uri = Column(String(2000))

    spotify_user_id = Column(String(255))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class SettingRecord(ConfigBase):
    """Key/value workspace setting, e.g. the default playback device."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    key = Column(String(255), nullable=False, unique=True)
    value = Column(String(2000))
