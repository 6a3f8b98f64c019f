import logging

from slackify.core.config import Settings
from slackify.services.slack_service import SlackClient
from slackify.storage.base import TrackStore
from slackify.utils.spotify import SpotifyClient

logger = logging.getLogger(__name__)

class SkipService:
    """Vote to skip the current track."""

    def __init__(self, spotify: SpotifyClient, slack: SlackClient, track_store: TrackStore, settings: Settings):
        self.spotify = spotify
        self.slack = slack
        self.track_store = track_store
        self.settings = settings

    async def vote(self, user_id: str, response_url: str) -> None:
        try:
            track = self.spotify.get_current_track()
            if track is None:
                await self.slack.reply(":information_source: Nothing is playing right now.", None, response_url)
                return

            skip = self.track_store.get_skip(track["uri"])
            votes = list(skip.votes) if skip else []
            if user_id in votes:
                await self.slack.reply(
                    f":information_source: You have already voted to skip *{track['name']}*.",
                    None,
                    response_url
                )
                return
            votes.append(user_id)

            required = self.settings.SKIP_VOTES
            if len(votes) >= required:
                self.spotify.next_track()
                self.track_store.delete_skip(track["uri"])
                logger.info(f"Skipped {track['uri']} after {len(votes)} votes")
                await self.slack.in_channel_reply(
                    f":black_right_pointing_double_triangle_with_vertical_bar: *{track['name']}* was skipped.",
                    None,
                    response_url
                )
                return

            self.track_store.save_skip(track["uri"], track["name"], votes)
            await self.slack.in_channel_reply(
                f":ballot_box_with_check: <@{user_id}> voted to skip *{track['name']}*. {len(votes)}/{required} votes.",
                None,
                response_url
            )
        except Exception as e:
            logger.error(f"Skip vote failed: {str(e)}")
            await self.slack.reply(":warning: Skip vote failed. Please try again.", None, response_url)
