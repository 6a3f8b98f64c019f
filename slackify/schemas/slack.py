"""Inbound Slack webhook payloads."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class SlashCommand(BaseModel):
    """Form body Slack posts for a slash command."""
    model_config = ConfigDict(extra="ignore")

    command: Optional[str] = None
    text: str = ""
    team_id: Optional[str] = None
    channel_id: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    response_url: str
    trigger_id: str

class SlackUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None

class SlackAction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    value: Optional[str] = None
    type: Optional[str] = None

class InteractivePayload(BaseModel):
    """JSON carried in the `payload` form field of a button click."""
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    callback_id: str
    actions: List[SlackAction] = Field(min_length=1)
    user: SlackUser
    response_url: str
    trigger_id: Optional[str] = None
