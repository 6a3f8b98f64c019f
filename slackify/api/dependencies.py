import hashlib
import hmac
import logging
import time

from fastapi import HTTPException, Request, status

from slackify.core.context import AppContext

logger = logging.getLogger(__name__)

def get_context(request: Request) -> AppContext:
    return request.app.state.context

async def verify_slack_request(request: Request) -> None:
    """
    Check the Slack request signature when a signing secret is configured.

    Raises:
        HTTPException: 401 when the signature is missing, stale or wrong
    """
    secret = get_context(request).settings.SLACK_SIGNING_SECRET
    if not secret:
        return

    timestamp = request.headers.get("X-Slack-Request-Timestamp")
    signature = request.headers.get("X-Slack-Signature")
    if not timestamp or not signature:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Slack signature")

    max_age = get_context(request).settings.SLACK_REQUEST_MAX_AGE
    try:
        if abs(time.time() - int(timestamp)) > max_age:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Stale Slack request")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Slack timestamp")

    body = await request.body()
    basestring = f"v0:{timestamp}:".encode() + body
    expected = "v0=" + hmac.new(secret.encode(), basestring, hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, signature):
        logger.warning("Rejected Slack request with an invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Slack signature")

def build_redirect_uri(request: Request) -> str:
    """Spotify redirect URI, configured or derived from the host Slack reached us on."""
    settings = get_context(request).settings
    if settings.SPOTIFY_REDIRECT_URI:
        return settings.SPOTIFY_REDIRECT_URI
    host = request.headers.get("host") or request.url.netloc
    return f"http://{host}/{settings.SPOTIFY_REDIRECT_PATH}"
