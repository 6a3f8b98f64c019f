import logging
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth

from slackify.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600

def token_expiry(token_info: Dict[str, Any]) -> datetime:
    """Absolute expiry of a Spotify token response."""
    expires_in = token_info.get("expires_in") or DEFAULT_EXPIRES_IN
    return datetime.utcnow() + timedelta(seconds=int(expires_in))

def simplify_track(track: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a Spotify track object to what the bot shows and stores."""
    album = track.get("album") or {}
    images = album.get("images") or []
    return {
        "uri": track["uri"],
        "name": track["name"],
        "artists": ", ".join(artist["name"] for artist in track.get("artists", [])),
        "album": album.get("name"),
        "image": images[-1]["url"] if images else None,
        "url": (track.get("external_urls") or {}).get("spotify"),
    }

class SpotifyClient:
    """Client for interacting with the Spotify Web API on behalf of the workspace."""

    def __init__(self, settings: Settings):
        self.client_id = settings.SPOTIFY_CLIENT_ID
        self.client_secret = settings.SPOTIFY_CLIENT_SECRET
        self.scopes = list(settings.SPOTIFY_SCOPES)
        self.requests_timeout = settings.SPOTIFY_REQUESTS_TIMEOUT
        # spotipy requires a redirect URI for token refreshes too
        self.redirect_uri: Optional[str] = settings.SPOTIFY_REDIRECT_URI
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self._client: Optional[spotipy.Spotify] = None

    def _auth_manager(self, redirect_uri: Optional[str] = None) -> SpotifyOAuth:
        if not self.client_id or not self.client_secret:
            raise ValueError("Missing required Spotify credentials")
        redirect_uri = redirect_uri or self.redirect_uri
        if not redirect_uri:
            raise ValueError("Missing Spotify redirect URI")
        return SpotifyOAuth(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=redirect_uri,
            scope=' '.join(self.scopes),
            cache_handler=MemoryCacheHandler(),  # Tokens are stored in the auth collection
            requests_timeout=self.requests_timeout,
            open_browser=False
        )

    @property
    def client(self) -> spotipy.Spotify:
        if not self.access_token:
            raise ValueError("Spotify access token not set")
        if self._client is None:
            self._client = spotipy.Spotify(
                auth=self.access_token,
                requests_timeout=self.requests_timeout
            )
        return self._client

    def update_tokens(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """Point the client at a new token pair."""
        self.access_token = access_token
        if refresh_token:
            self.refresh_token = refresh_token
        self._client = None

    # ------------------------
    # OAuth
    # ------------------------
    def get_authorize_url(self, state: str, redirect_uri: str) -> str:
        self.redirect_uri = redirect_uri
        return self._auth_manager(redirect_uri).get_authorize_url(state=state)

    def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        """Exchange an authorization code for an access and refresh token."""
        self.redirect_uri = redirect_uri
        token_info = self._auth_manager(redirect_uri).get_access_token(
            code,
            as_dict=True,
            check_cache=False
        )
        if not token_info or not token_info.get("access_token"):
            raise ValueError("Spotify token exchange returned no access token")
        self.update_tokens(token_info["access_token"], token_info.get("refresh_token"))
        return token_info

    def renew_access_token(self) -> Dict[str, Any]:
        """Refresh the access token with the stored refresh token."""
        if not self.refresh_token:
            raise ValueError("No refresh token available")
        token_info = self._auth_manager().refresh_access_token(self.refresh_token)
        self.update_tokens(token_info["access_token"], token_info.get("refresh_token"))
        return token_info

    # ------------------------
    # Web API
    # ------------------------
    def get_profile(self) -> Dict[str, Any]:
        return self.client.current_user()

    def get_playback_state(self) -> Optional[Dict[str, Any]]:
        """Current playback, or None when no device is active."""
        return self.client.current_playback()

    def get_devices(self) -> List[Dict[str, Any]]:
        result = self.client.devices() or {}
        return result.get("devices", [])

    def play(self, device_id: Optional[str] = None) -> None:
        self.client.start_playback(device_id=device_id)

    def pause(self, device_id: Optional[str] = None) -> None:
        self.client.pause_playback(device_id=device_id)

    def transfer_playback(self, device_id: str) -> None:
        self.client.transfer_playback(device_id, force_play=True)

    def next_track(self) -> None:
        self.client.next_track()

    def search_tracks(self, search_term: str, limit: int = 30) -> List[Dict[str, Any]]:
        # The search endpoint caps a page at 50 results
        result = self.client.search(q=search_term, type="track", limit=min(limit, 50), market="from_token")
        items = ((result or {}).get("tracks") or {}).get("items") or []
        return [simplify_track(track) for track in items if track]

    def add_to_queue(self, track_uri: str) -> None:
        self.client.add_to_queue(track_uri)

    def get_current_track(self) -> Optional[Dict[str, Any]]:
        """The track currently loaded in the player, whether playing or paused."""
        playing = self.client.currently_playing()
        if not playing or not playing.get("item"):
            return None
        if playing.get("currently_playing_type", "track") != "track":
            return None
        return simplify_track(playing["item"])
