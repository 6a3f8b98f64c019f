"""Slack response_url replies and message formatting."""

from typing import Dict, List, Optional, Any
import logging

import httpx

logger = logging.getLogger(__name__)

EPHEMERAL = "ephemeral"
IN_CHANNEL = "in_channel"

BUTTON_STYLE_PRIMARY = "primary"
BUTTON_STYLE_DANGER = "danger"

def button(name: str, text: str, value: str, style: Optional[str] = None) -> Dict[str, Any]:
    action = {"name": name, "text": text, "type": "button", "value": value}
    if style:
        action["style"] = style
    return action

def url_button_attachment(
    text: str,
    fallback: str,
    button_text: str,
    url: str,
    style: Optional[str] = None,
    callback_id: Optional[str] = None
) -> Dict[str, Any]:
    """Attachment holding a single link button."""
    action = {"type": "button", "text": button_text, "url": url}
    if style:
        action["style"] = style
    attachment = {"text": text, "fallback": fallback, "actions": [action]}
    if callback_id:
        attachment["callback_id"] = callback_id
    return attachment

def button_attachment(
    callback_id: str,
    actions: List[Dict[str, Any]],
    text: Optional[str] = None,
    fallback: str = "Your client does not support buttons"
) -> Dict[str, Any]:
    attachment = {
        "callback_id": callback_id,
        "fallback": fallback,
        "attachment_type": "default",
        "actions": actions,
    }
    if text:
        attachment["text"] = text
    return attachment

def track_attachment(track: Dict[str, Any], callback_id: str, action: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Attachment describing one track, optionally with an action button."""
    attachment = {
        "callback_id": callback_id,
        "fallback": f"{track['name']} by {track['artists']}",
        "title": track["name"],
        "text": track["artists"],
        "attachment_type": "default",
    }
    if track.get("url"):
        attachment["title_link"] = track["url"]
    if track.get("image"):
        attachment["thumb_url"] = track["image"]
    if action:
        attachment["actions"] = [action]
    return attachment

class SlackClient:
    """Posts replies to Slack response_url callbacks."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def _post(self, response_url: Optional[str], body: Dict[str, Any]) -> bool:
        if not response_url:
            logger.warning("No response_url to reply to, dropping Slack message")
            return False
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(response_url, json=body)
                response.raise_for_status()
                return True
        except httpx.HTTPError as e:
            logger.error(f"Replying to Slack failed: {str(e)}")
            return False

    async def reply(
        self,
        text: str,
        attachments: Optional[List[Dict[str, Any]]],
        response_url: Optional[str]
    ) -> bool:
        """Reply visible only to the user who triggered the interaction."""
        body: Dict[str, Any] = {"response_type": EPHEMERAL, "text": text}
        if attachments:
            body["attachments"] = attachments
        return await self._post(response_url, body)

    async def in_channel_reply(
        self,
        text: str,
        attachments: Optional[List[Dict[str, Any]]],
        response_url: Optional[str]
    ) -> bool:
        """Reply visible to the whole channel."""
        body: Dict[str, Any] = {"response_type": IN_CHANNEL, "text": text}
        if attachments:
            body["attachments"] = attachments
        return await self._post(response_url, body)

    async def replace_original(
        self,
        text: str,
        attachments: Optional[List[Dict[str, Any]]],
        response_url: Optional[str]
    ) -> bool:
        body: Dict[str, Any] = {"replace_original": True, "text": text}
        if attachments:
            body["attachments"] = attachments
        return await self._post(response_url, body)

    async def delete_original(self, response_url: Optional[str]) -> bool:
        return await self._post(response_url, {"delete_original": True})
