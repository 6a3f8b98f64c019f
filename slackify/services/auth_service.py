"""Spotify authentication lifecycle for the workspace."""

from typing import Optional
from datetime import datetime, timedelta
import logging

from slackify.core.config import Settings
from slackify.services.slack_service import SlackClient, url_button_attachment, BUTTON_STYLE_PRIMARY
from slackify.storage.base import AuthStore
from slackify.tasks.scheduler import RefreshScheduler
from slackify.utils.spotify import SpotifyClient, token_expiry

logger = logging.getLogger(__name__)

REFRESH_JOB = "refresh_token"

class AuthService:
    """Tracks the single OAuth credential record and keeps it fresh."""

    def __init__(
        self,
        auth_store: AuthStore,
        spotify: SpotifyClient,
        slack: SlackClient,
        scheduler: RefreshScheduler,
        settings: Settings
    ):
        self.auth_store = auth_store
        self.spotify = spotify
        self.slack = slack
        self.scheduler = scheduler
        self.settings = settings

    async def initialise(self) -> None:
        """Load the stored credential, renew it and start the refresh job."""
        try:
            if self.is_auth_expired():
                logger.warning("Need to get a new authentication token from Spotify")
                return
            auth = self.auth_store.get_auth()
            self.spotify.update_tokens(auth.access_token, auth.refresh_token)
            try:
                await self.refresh_token()
            except Exception:
                logger.warning("Need to get a new authentication token from Spotify")
                self.auth_store.expire_auth()
                return
            self.set_refresh_token_job()
        except Exception as e:
            logger.error(f"Initialising auth failed: {str(e)}")

    async def setup_auth(
        self,
        trigger_id: str,
        response_url: str,
        channel_id: Optional[str],
        team_id: Optional[str],
        redirect_uri: str
    ) -> None:
        """
        Start the Authorization Code Flow for the workspace.

        Args:
            trigger_id: Slack trigger id, sent to Spotify as the OAuth state
            response_url: Slack callback for the outcome
            channel_id: Channel to return the user to afterwards
            team_id: Workspace to return the user to afterwards
            redirect_uri: Callback URL registered with Spotify
        """
        try:
            if self.auth_store.get_auth() is None:
                self.auth_store.setup_auth()
            window = self.settings.AUTH_WINDOW_MINUTES
            self.auth_store.set_auth(
                trigger_id,
                datetime.utcnow() + timedelta(minutes=window),
                channel_id,
                team_id,
                response_url,
                redirect_uri
            )
            auth_url = self.spotify.get_authorize_url(trigger_id, redirect_uri)

            auth_attachment = url_button_attachment(
                text=f"Please visit the following link to authenticate your Spotify account: {auth_url}",
                fallback=f"Please visit the following link to authenticate your Spotify account: {auth_url}",
                button_text=":link: Authenticate with Spotify",
                url=auth_url,
                style=BUTTON_STYLE_PRIMARY
            )
            await self.slack.reply(
                "Please visit the following link to authenticate your Spotify account. "
                f"You have {window} minutes to authenticate.",
                [auth_attachment],
                response_url
            )
        except Exception as e:
            logger.error(f"Setting up auth failed: {str(e)}")

    async def get_tokens(self, code: str, state: str, redirect_uri: str) -> Optional[str]:
        """
        Complete the Authorization Code Flow.

        Args:
            code: Code passed back by Spotify
            state: State passed back by Spotify
            redirect_uri: Redirect URI used when the flow started

        Returns:
            Deep link back to the Slack channel, or None if the flow failed
        """
        try:
            auth = self.auth_store.get_auth()
            if auth is None:
                logger.warning("Spotify callback received before auth was set up")
                return None

            if auth.trigger_id != state:
                await self.slack.reply(":no_entry: Invalid State, Please re-authenticate again", None, auth.response_url)
            elif auth.trigger_expires is None or datetime.utcnow() > auth.trigger_expires:
                await self.slack.reply(
                    ":no_entry: Your authentication window has expired. Please try again",
                    None,
                    auth.response_url
                )
            else:
                tokens = self.spotify.exchange_code(code, redirect_uri)
                self.auth_store.update_tokens(
                    tokens["access_token"],
                    tokens.get("refresh_token"),
                    token_expiry(tokens)
                )
                # Spotify id is needed for playlist additions later
                profile = self.spotify.get_profile()
                self.auth_store.set_spotify_user_id(profile["id"])
                self.set_refresh_token_job()
                await self.slack.reply(":white_check_mark: Successfully authenticated.", None, auth.response_url)
            return f"slack://channel?id={auth.channel_id}&team={auth.team_id}"

        except Exception as e:
            logger.error(f"Auth grant failed: {str(e)}")
            return None

    async def deny_auth(self, error: str, state: Optional[str]) -> None:
        """Report a Spotify authorization that the user declined or that errored."""
        logger.error(f"Spotify authorization error: {error}")
        auth = self.auth_store.get_auth()
        if auth is None or auth.trigger_id != state:
            return
        await self.slack.reply(f":no_entry: Spotify authorization failed: {error}", None, auth.response_url)

    def is_auth_expired(self) -> bool:
        auth = self.auth_store.get_auth()
        if auth is None or not auth.access_token or auth.expires is None:
            return True
        return datetime.utcnow() >= auth.expires

    def is_auth_setup(self) -> bool:
        return self.auth_store.get_auth() is not None

    # ------------------------
    # Refresh Token Functions
    # ------------------------
    def set_refresh_token_job(self) -> None:
        """Schedule the access token refresh, replacing any existing schedule."""
        try:
            logger.info("Setting refresh token job")
            self.scheduler.add_job(
                REFRESH_JOB,
                self.settings.REFRESH_INTERVAL_MINUTES * 60,
                self._refresh_token_job
            )
        except Exception as e:
            logger.error(f"Setting refresh token job failed: {str(e)}")

    async def _refresh_token_job(self) -> None:
        try:
            logger.info("Refreshing token")
            await self.refresh_token()
        except Exception as e:
            logger.error(f"Refresh token job failed, stopping refreshes until re-authentication: {str(e)}")
            self.auth_store.expire_auth()
            self.scheduler.remove_job(REFRESH_JOB)

    async def refresh_token(self) -> None:
        """Renew the access token and store it. Raises on failure."""
        try:
            auth = self.auth_store.get_auth()
            if auth is None or not auth.refresh_token:
                raise ValueError("No refresh token stored")
            if self.spotify.refresh_token != auth.refresh_token:
                self.spotify.update_tokens(auth.access_token, auth.refresh_token)
            if auth.redirect_uri:
                self.spotify.redirect_uri = auth.redirect_uri
            tokens = self.spotify.renew_access_token()
            self.auth_store.update_tokens(
                tokens["access_token"],
                tokens.get("refresh_token"),
                token_expiry(tokens)
            )
        except Exception as e:
            logger.error(f"Refreshing token failed: {str(e)}")
            raise
