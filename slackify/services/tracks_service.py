"""Track search, queueing and queue history."""

from typing import Dict, Any, Optional
from datetime import datetime, timedelta
import logging

from slackify.core.config import Settings
from slackify.services.slack_service import (
    SlackClient,
    button,
    button_attachment,
    track_attachment,
    BUTTON_STYLE_PRIMARY,
    BUTTON_STYLE_DANGER,
)
from slackify.storage.base import TrackStore
from slackify.utils.spotify import SpotifyClient

logger = logging.getLogger(__name__)

ADD_TRACK = "add_track"
SEE_MORE_TRACKS = "see_more_tracks"
CANCEL_SEARCH = "cancel_search"

SEARCH_EXPIRED = ":warning: Search expired. Please search again."

class TracksService:
    def __init__(self, spotify: SpotifyClient, slack: SlackClient, track_store: TrackStore, settings: Settings):
        self.spotify = spotify
        self.slack = slack
        self.track_store = track_store
        self.settings = settings

    async def find(self, search_term: Optional[str], trigger_id: str, response_url: str) -> None:
        """
        Search Spotify for tracks and show the first page of results.

        Args:
            search_term: Text of the slash command
            trigger_id: Slack trigger id, the key of the stored search
            response_url: Slack callback for the results
        """
        search_term = (search_term or "").strip()
        if not search_term:
            await self.slack.reply(":information_source: Usage: `/find <track name>`", None, response_url)
            return

        tracks = self.spotify.search_tracks(search_term, limit=self.settings.SEARCH_LIMIT)
        if not tracks:
            await self.slack.reply(
                f":slightly_frowning_face: No tracks found for the search term: {search_term}",
                None,
                response_url
            )
            return

        self.track_store.save_search(trigger_id, search_term, tracks)
        logger.info(f"Found {len(tracks)} tracks for {search_term}")
        await self.get_three_tracks(trigger_id, 0, response_url, replace=False)

    async def get_three_tracks(self, trigger_id: str, start, response_url: str, replace: bool = True) -> None:
        """Show the page of stored search results beginning at `start`.

        The first page is a fresh ephemeral reply, later pages replace the
        message holding the "See more tracks" button.
        """
        search = self.track_store.get_search(trigger_id)
        if search is None:
            await self.slack.reply(SEARCH_EXPIRED, None, response_url)
            return

        tracks = search.tracks or []
        try:
            start = int(start)
        except (TypeError, ValueError):
            start = -1
        if not 0 <= start < len(tracks):
            logger.warning(f"Page start {start} outside {len(tracks)} results of search {trigger_id}")
            await self.slack.reply(SEARCH_EXPIRED, None, response_url)
            return

        page_size = self.settings.SEARCH_PAGE_SIZE
        page = tracks[start:start + page_size]

        attachments = [
            track_attachment(
                track,
                trigger_id,
                button(ADD_TRACK, "Add to playlist", track["uri"], BUTTON_STYLE_PRIMARY)
            )
            for track in page
        ]
        actions = []
        next_start = start + page_size
        if next_start < len(tracks):
            actions.append(button(SEE_MORE_TRACKS, "See more tracks", str(next_start)))
        actions.append(button(CANCEL_SEARCH, "Cancel search", CANCEL_SEARCH, BUTTON_STYLE_DANGER))
        attachments.append(button_attachment(trigger_id, actions))

        shown_to = min(next_start, len(tracks))
        text = f":mag: Showing {start + 1}-{shown_to} of {len(tracks)} results for *{search.search_term}*"
        if replace:
            await self.slack.replace_original(text, attachments, response_url)
        else:
            await self.slack.reply(text, attachments, response_url)

    async def add_track(self, trigger_id: str, track_uri: str, user_id: str, response_url: str) -> None:
        """Queue a track picked from a search result."""
        try:
            search = self.track_store.get_search(trigger_id)
            if search is None:
                await self.slack.reply(SEARCH_EXPIRED, None, response_url)
                return
            track: Optional[Dict[str, Any]] = next(
                (t for t in search.tracks or [] if t["uri"] == track_uri),
                None
            )
            if track is None:
                await self.slack.reply(SEARCH_EXPIRED, None, response_url)
                return

            history = self.track_store.get_history(track_uri)
            window = timedelta(hours=self.settings.HISTORY_WINDOW_HOURS)
            if history and datetime.utcnow() - history.added_at < window:
                await self.slack.reply(
                    f":information_source: *{track['name']}* has already been added to the queue recently.",
                    None,
                    response_url
                )
                return

            self.spotify.add_to_queue(track_uri)
            self.track_store.add_history(track_uri, track["name"], track["artists"], user_id, datetime.utcnow())
            self.track_store.delete_search(trigger_id)
            await self.slack.in_channel_reply(
                f":white_check_mark: <@{user_id}> added *{track['name']}* by {track['artists']} to the queue.",
                None,
                response_url
            )
        except Exception as e:
            logger.error(f"Adding track {track_uri} failed: {str(e)}")
            await self.slack.reply(":warning: Track could not be added. Please try again.", None, response_url)

    def cancel_search(self, trigger_id: str) -> None:
        self.track_store.delete_search(trigger_id)

    async def whom(self, response_url: str) -> None:
        """Tell the channel who queued the current track."""
        try:
            track = self.spotify.get_current_track()
            if track is None:
                await self.slack.in_channel_reply(":information_source: Nothing is playing right now.", None, response_url)
                return
            history = self.track_store.get_history(track["uri"])
            if history is None or not history.user_id:
                await self.slack.in_channel_reply(
                    f":information_source: *{track['name']}* by {track['artists']} was not added through Slack.",
                    None,
                    response_url
                )
                return
            await self.slack.in_channel_reply(
                f":microphone: *{track['name']}* by {track['artists']} was last added by <@{history.user_id}>.",
                None,
                response_url
            )
        except Exception as e:
            logger.error(f"Whom failed: {str(e)}")
            await self.slack.reply(":warning: Could not find who added the current track.", None, response_url)
