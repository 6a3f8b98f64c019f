import logging

from slackify.services.settings_service import SettingsService
from slackify.services.slack_service import SlackClient
from slackify.utils.spotify import SpotifyClient

logger = logging.getLogger(__name__)

ALREADY_PLAYING = ":information_source: Spotify is already playing."
NOW_PLAYING = ":arrow_forward: Spotify is now playing."
FAILED_TO_PLAY = ":warning: Spotify failed to play."
ALREADY_PAUSED = ":information_source: Spotify is already paused."
NOW_PAUSED = ":double_vertical_bar: Spotify is now paused."
FAILED_TO_PAUSE = ":warning: Spotify failed to pause."
CURRENTLY_PAUSED = ":information_source: Spotify is currently paused."
DEVICE_CLOSED = ":information_source: Your Spotify device is currently closed."
FAILED_STATUS = ":warning: Failed to get the Spotify status."

class PlayerService:
    """Maps play, pause and status requests onto the Spotify player."""

    def __init__(self, spotify: SpotifyClient, slack: SlackClient, settings_service: SettingsService):
        self.spotify = spotify
        self.slack = slack
        self.settings_service = settings_service

    async def play(self, response_url: str) -> None:
        """Hits play on Spotify."""
        try:
            player_info = self.spotify.get_playback_state() or {}
            if player_info.get("is_playing"):
                await self.slack.in_channel_reply(ALREADY_PLAYING, None, response_url)
                return
            # Regular play on the active device
            if player_info.get("device"):
                self.spotify.play()
                await self.slack.in_channel_reply(NOW_PLAYING, None, response_url)
                return
            # Transfer playback to the default device
            logger.info("Trying Spotify transfer playback workaround")
            devices = self.spotify.get_devices()
            if not devices:
                await self.slack.in_channel_reply(DEVICE_CLOSED, None, response_url)
                return
            default_device = self.settings_service.get_default_device()
            device = next((d for d in devices if d["id"] == default_device), None)
            if device:
                self.spotify.transfer_playback(device["id"])
                await self.slack.in_channel_reply(NOW_PLAYING, None, response_url)
                return
            logger.warning("No default device among the open devices")
        except Exception as e:
            logger.error(f"Spotify failed to play: {str(e)}")
        await self.slack.in_channel_reply(FAILED_TO_PLAY, None, response_url)

    async def pause(self, response_url: str) -> None:
        """Hits pause on Spotify."""
        try:
            player_info = self.spotify.get_playback_state() or {}
            if player_info.get("is_playing") is False:
                await self.slack.in_channel_reply(ALREADY_PAUSED, None, response_url)
                return
            if player_info.get("device"):
                self.spotify.pause()
                await self.slack.in_channel_reply(NOW_PAUSED, None, response_url)
                return
            logger.info("Checking device status")
            if self.spotify.get_devices():
                await self.slack.in_channel_reply(ALREADY_PAUSED, None, response_url)
            else:
                await self.slack.in_channel_reply(DEVICE_CLOSED, None, response_url)
            return
        except Exception as e:
            logger.error(f"Spotify failed to pause: {str(e)}")
        await self.slack.in_channel_reply(FAILED_TO_PAUSE, None, response_url)

    async def status(self, response_url: str) -> None:
        """Reports what Spotify is doing right now."""
        try:
            player_info = self.spotify.get_playback_state()
            if player_info and player_info.get("is_playing"):
                track = player_info.get("item") or {}
                artists = ", ".join(artist["name"] for artist in track.get("artists", []))
                if track.get("name"):
                    text = f":musical_note: Spotify is currently playing *{track['name']}* by {artists}."
                else:
                    text = ":musical_note: Spotify is currently playing."
                await self.slack.in_channel_reply(text, None, response_url)
                return
            if player_info:
                await self.slack.in_channel_reply(CURRENTLY_PAUSED, None, response_url)
                return
            if self.spotify.get_devices():
                await self.slack.in_channel_reply(CURRENTLY_PAUSED, None, response_url)
            else:
                await self.slack.in_channel_reply(DEVICE_CLOSED, None, response_url)
            return
        except Exception as e:
            logger.error(f"Getting Spotify status failed: {str(e)}")
        await self.slack.in_channel_reply(FAILED_STATUS, None, response_url)
