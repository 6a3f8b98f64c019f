"""SQLAlchemy backed document stores."""

from typing import Dict, Any, List, Optional
from datetime import datetime, timedelta
import logging

from sqlalchemy import select, delete
from sqlalchemy.orm import sessionmaker

from slackify.models import AuthRecord, SettingRecord, SearchRecord, HistoryRecord, SkipRecord
from slackify.storage.base import AuthStore, SettingsStore, TrackStore

logger = logging.getLogger(__name__)

class SQLAuthStore(AuthStore, SettingsStore):
    """Auth and settings collections of the config document file."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _get_record(self, session) -> Optional[AuthRecord]:
        result = session.execute(select(AuthRecord).order_by(AuthRecord.id).limit(1))
        return result.scalar_one_or_none()

    def get_auth(self) -> Optional[AuthRecord]:
        with self.session_factory() as session:
            return self._get_record(session)

    def setup_auth(self) -> AuthRecord:
        with self.session_factory() as session:
            record = self._get_record(session)
            if record is None:
                record = AuthRecord()
                session.add(record)
                session.commit()
                logger.info("Created auth record")
            return record

    def set_auth(self, trigger_id, trigger_expires, channel_id, team_id, response_url, redirect_uri=None) -> None:
        with self.session_factory() as session:
            record = self._get_record(session)
            if record is None:
                record = AuthRecord()
                session.add(record)
            record.trigger_id = trigger_id
            record.trigger_expires = trigger_expires
            record.channel_id = channel_id
            record.team_id = team_id
            record.response_url = response_url
            if redirect_uri:
                record.redirect_uri = redirect_uri
            session.commit()

    def update_tokens(self, access_token: str, refresh_token: Optional[str], expires: datetime) -> None:
        with self.session_factory() as session:
            record = self._get_record(session)
            if record is None:
                raise ValueError("Auth has not been set up")
            record.access_token = access_token
            if refresh_token:
                record.refresh_token = refresh_token
            record.expires = expires
            session.commit()

    def expire_auth(self) -> None:
        with self.session_factory() as session:
            record = self._get_record(session)
            if record is None:
                return
            record.expires = datetime.utcnow()
            session.commit()
            logger.info("Marked Spotify authentication as expired")

    def set_spotify_user_id(self, spotify_user_id: str) -> None:
        with self.session_factory() as session:
            record = self._get_record(session)
            if record is None:
                raise ValueError("Auth has not been set up")
            record.spotify_user_id = spotify_user_id
            session.commit()

    def get_setting(self, key: str) -> Optional[str]:
        with self.session_factory() as session:
            result = session.execute(select(SettingRecord).filter_by(key=key))
            setting = result.scalar_one_or_none()
            return setting.value if setting else None

    def set_setting(self, key: str, value: Optional[str]) -> None:
        with self.session_factory() as session:
            result = session.execute(select(SettingRecord).filter_by(key=key))
            setting = result.scalar_one_or_none()
            if setting is None:
                session.add(SettingRecord(key=key, value=value))
            else:
                setting.value = value
            session.commit()


class SQLTrackStore(TrackStore):
    """Search, history and skip collections of the tracks document file."""

    def __init__(self, session_factory: sessionmaker, search_ttl: timedelta = timedelta(hours=24)):
        self.session_factory = session_factory
        self.search_ttl = search_ttl

    def save_search(self, trigger_id: str, search_term: str, tracks: List[Dict[str, Any]]) -> SearchRecord:
        with self.session_factory() as session:
            now = datetime.utcnow()
            # Searches nobody added from or cancelled are dropped after the TTL
            pruned = session.execute(delete(SearchRecord).where(SearchRecord.created_at < now - self.search_ttl))
            if pruned.rowcount:
                logger.info(f"Pruned {pruned.rowcount} expired searches")
            result = session.execute(select(SearchRecord).filter_by(trigger_id=trigger_id))
            search = result.scalar_one_or_none()
            if search is None:
                search = SearchRecord(trigger_id=trigger_id)
                session.add(search)
            search.search_term = search_term
            search.tracks = list(tracks)
            search.created_at = now
            session.commit()
            return search

    def get_search(self, trigger_id: str) -> Optional[SearchRecord]:
        with self.session_factory() as session:
            result = session.execute(select(SearchRecord).filter_by(trigger_id=trigger_id))
            return result.scalar_one_or_none()

    def delete_search(self, trigger_id: str) -> None:
        with self.session_factory() as session:
            session.execute(delete(SearchRecord).where(SearchRecord.trigger_id == trigger_id))
            session.commit()

    def get_history(self, track_uri: str) -> Optional[HistoryRecord]:
        with self.session_factory() as session:
            result = session.execute(select(HistoryRecord).filter_by(track_uri=track_uri))
            return result.scalar_one_or_none()

    def add_history(self, track_uri: str, name: str, artists: str, user_id: str, added_at: datetime) -> HistoryRecord:
        with self.session_factory() as session:
            result = session.execute(select(HistoryRecord).filter_by(track_uri=track_uri))
            history = result.scalar_one_or_none()
            if history is None:
                history = HistoryRecord(track_uri=track_uri)
                session.add(history)
            history.name = name
            history.artists = artists
            history.user_id = user_id
            history.added_at = added_at
            session.commit()
            return history

    def get_skip(self, track_uri: str) -> Optional[SkipRecord]:
        with self.session_factory() as session:
            result = session.execute(select(SkipRecord).filter_by(skip=track_uri))
            return result.scalar_one_or_none()

    def save_skip(self, track_uri: str, name: str, votes: List[str]) -> SkipRecord:
        with self.session_factory() as session:
            # Votes only ever count towards the track that is playing now
            session.execute(delete(SkipRecord).where(SkipRecord.skip != track_uri))
            result = session.execute(select(SkipRecord).filter_by(skip=track_uri))
            skip = result.scalar_one_or_none()
            if skip is None:
                skip = SkipRecord(skip=track_uri)
                session.add(skip)
            skip.name = name
            skip.votes = list(votes)
            session.commit()
            return skip

    def delete_skip(self, track_uri: str) -> None:
        with self.session_factory() as session:
            session.execute(delete(SkipRecord).where(SkipRecord.skip == track_uri))
            session.commit()
