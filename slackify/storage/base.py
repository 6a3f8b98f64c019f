"""Storage interfaces for the auth/config and tracks document files."""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
from datetime import datetime

from slackify.models import AuthRecord, SearchRecord, HistoryRecord, SkipRecord

class AuthStore(ABC):
    """Storage for the single workspace credential record."""

    @abstractmethod
    def get_auth(self) -> Optional[AuthRecord]:
        """Get the credential record, or None if auth was never set up."""
        pass

    @abstractmethod
    def setup_auth(self) -> AuthRecord:
        """Create an empty credential record."""
        pass

    @abstractmethod
    def set_auth(
        self,
        trigger_id: str,
        trigger_expires: datetime,
        channel_id: Optional[str],
        team_id: Optional[str],
        response_url: Optional[str],
        redirect_uri: Optional[str] = None
    ) -> None:
        """Record a pending authentication request.

        Args:
            trigger_id: Slack trigger id, used as the OAuth state
            trigger_expires: End of the authentication window
            channel_id: Channel the request came from
            team_id: Workspace the request came from
            response_url: Where to send the outcome
            redirect_uri: Callback URL registered with Spotify, reused for refreshes
        """
        pass

    @abstractmethod
    def update_tokens(self, access_token: str, refresh_token: Optional[str], expires: datetime) -> None:
        """Store a fresh token pair. A None refresh token keeps the stored one."""
        pass

    @abstractmethod
    def expire_auth(self) -> None:
        """Mark the stored credential as expired."""
        pass

    @abstractmethod
    def set_spotify_user_id(self, spotify_user_id: str) -> None:
        pass


class SettingsStore(ABC):
    """Key/value workspace settings."""

    @abstractmethod
    def get_setting(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_setting(self, key: str, value: Optional[str]) -> None:
        pass


class TrackStore(ABC):
    """Storage for searches, queue history and skip votes."""

    @abstractmethod
    def save_search(self, trigger_id: str, search_term: str, tracks: List[Dict[str, Any]]) -> SearchRecord:
        """Store the results of a search, replacing any previous one for the trigger.

        Searches older than the store's retention window are pruned.
        """
        pass

    @abstractmethod
    def get_search(self, trigger_id: str) -> Optional[SearchRecord]:
        pass

    @abstractmethod
    def delete_search(self, trigger_id: str) -> None:
        pass

    @abstractmethod
    def get_history(self, track_uri: str) -> Optional[HistoryRecord]:
        pass

    @abstractmethod
    def add_history(self, track_uri: str, name: str, artists: str, user_id: str, added_at: datetime) -> HistoryRecord:
        """Record that a track was queued. Re-queueing a track overwrites its entry."""
        pass

    @abstractmethod
    def get_skip(self, track_uri: str) -> Optional[SkipRecord]:
        pass

    @abstractmethod
    def save_skip(self, track_uri: str, name: str, votes: List[str]) -> SkipRecord:
        """Store the votes for a track, discarding votes recorded for any other track."""
        pass

    @abstractmethod
    def delete_skip(self, track_uri: str) -> None:
        pass
