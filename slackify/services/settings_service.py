"""Workspace settings: the default playback device."""

from typing import Optional
import logging

from slackify.services.slack_service import SlackClient
from slackify.storage.base import SettingsStore
from slackify.utils.spotify import SpotifyClient

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "default_device"

class SettingsService:
    def __init__(self, settings_store: SettingsStore, spotify: SpotifyClient, slack: SlackClient):
        self.settings_store = settings_store
        self.spotify = spotify
        self.slack = slack

    def get_default_device(self) -> Optional[str]:
        return self.settings_store.get_setting(DEFAULT_DEVICE)

    def set_default_device(self, device_id: Optional[str]) -> None:
        self.settings_store.set_setting(DEFAULT_DEVICE, device_id)

    async def device(self, text: Optional[str], response_url: str) -> None:
        """List the open devices, or make the named one the default.

        Args:
            text: Device id or name, empty to list devices
            response_url: Slack callback for the reply
        """
        try:
            devices = self.spotify.get_devices()
            if not devices:
                await self.slack.reply(":information_source: Your Spotify device is currently closed.", None, response_url)
                return

            text = (text or "").strip()
            if not text:
                default_device = self.get_default_device()
                lines = []
                for device in devices:
                    marker = " :star:" if device["id"] == default_device else ""
                    lines.append(f"• {device['name']} ({device['type']}){marker}")
                await self.slack.reply(
                    "Available Spotify devices. Use `/device <name>` to set the default:\n" + "\n".join(lines),
                    None,
                    response_url
                )
                return

            device = next(
                (d for d in devices if d["id"] == text or d["name"].lower() == text.lower()),
                None
            )
            if device is None:
                await self.slack.reply(f":warning: Device not found: {text}", None, response_url)
                return

            self.set_default_device(device["id"])
            logger.info(f"Default device set to {device['name']}")
            await self.slack.reply(f":white_check_mark: Default device set to *{device['name']}*.", None, response_url)

        except Exception as e:
            logger.error(f"Setting default device failed: {str(e)}")
            await self.slack.reply(":warning: Failed to update the default device.", None, response_url)
