from typing import Optional
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from slackify.api.dependencies import get_context, build_redirect_uri
from slackify.core.context import AppContext

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/spotify/callback")
async def spotify_callback_handler(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    context: AppContext = Depends(get_context)
):
    """Handle the Spotify OAuth redirect and send the user back to Slack."""
    if error:
        await context.auth_service.deny_auth(error, state)
        return PlainTextResponse("Spotify authorization failed. You can close this window.", status_code=400)

    if not code or not state:
        logger.error("Missing code or state in Spotify callback")
        return PlainTextResponse("Missing code or state.", status_code=400)

    slack_link = await context.auth_service.get_tokens(code, state, build_redirect_uri(request))
    if not slack_link:
        return PlainTextResponse("Authentication failed. Please try again from Slack.", status_code=500)
    return RedirectResponse(url=slack_link, status_code=303)
