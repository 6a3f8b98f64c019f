import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from spotipy.oauth2 import SpotifyOAuth

from slackify.core.context import build_context
from slackify.db.init_db import init_db
from slackify.services.auth_service import REFRESH_JOB

TEST_RESPONSE_URL = "https://hooks.slack.com/commands/T123/456/abc"

REDIRECT_URI = "http://localhost:8000/auth/spotify/callback"

@pytest.fixture
def auth_service(context):
    return context.auth_service

@pytest.fixture
def token_response():
    return {
        "access_token": "new_access_token",
        "refresh_token": "new_refresh_token",
        "expires_in": 3600,
        "token_type": "Bearer",
    }

@pytest.mark.asyncio
async def test_setup_auth_sends_authorize_link(auth_service, auth_store, mock_spotify, mock_slack):
    """Test that setup stores the pending request and replies with the authorize URL."""
    mock_spotify.get_authorize_url.return_value = "https://accounts.spotify.com/authorize?state=trigger-1"

    await auth_service.setup_auth("trigger-1", TEST_RESPONSE_URL, "C123", "T123", REDIRECT_URI)

    auth = auth_store.get_auth()
    assert auth.trigger_id == "trigger-1"
    assert auth.channel_id == "C123"
    assert auth.team_id == "T123"
    assert auth.response_url == TEST_RESPONSE_URL
    assert auth.redirect_uri == REDIRECT_URI
    assert auth.trigger_expires > datetime.utcnow() + timedelta(minutes=29)
    mock_spotify.get_authorize_url.assert_called_once_with("trigger-1", REDIRECT_URI)

    text, attachments, response_url = mock_slack.reply.call_args.args
    assert "30 minutes" in text
    assert response_url == TEST_RESPONSE_URL
    assert attachments[0]["actions"][0]["url"] == "https://accounts.spotify.com/authorize?state=trigger-1"
    assert attachments[0]["actions"][0]["style"] == "primary"

@pytest.mark.asyncio
async def test_get_tokens_invalid_state(auth_service, auth_store, mock_spotify, mock_slack):
    """Test that a mismatched state is rejected without persisting tokens."""
    await auth_service.setup_auth("trigger-1", TEST_RESPONSE_URL, "C123", "T123", REDIRECT_URI)
    mock_slack.reply.reset_mock()

    link = await auth_service.get_tokens("auth-code", "someone-else", REDIRECT_URI)

    mock_slack.reply.assert_called_once_with(
        ":no_entry: Invalid State, Please re-authenticate again", None, TEST_RESPONSE_URL
    )
    mock_spotify.exchange_code.assert_not_called()
    auth = auth_store.get_auth()
    assert auth.access_token is None
    assert auth.refresh_token is None
    assert not auth_service.scheduler.has_job(REFRESH_JOB)
    assert link == "slack://channel?id=C123&team=T123"

@pytest.mark.asyncio
async def test_get_tokens_expired_window(auth_service, auth_store, mock_spotify, mock_slack):
    """Test that a callback after the authentication window is rejected."""
    auth_store.setup_auth()
    auth_store.set_auth("trigger-1", datetime.utcnow() - timedelta(minutes=1), "C123", "T123", TEST_RESPONSE_URL)

    await auth_service.get_tokens("auth-code", "trigger-1", REDIRECT_URI)

    text = mock_slack.reply.call_args.args[0]
    assert "authentication window has expired" in text
    mock_spotify.exchange_code.assert_not_called()
    assert auth_store.get_auth().access_token is None

@pytest.mark.asyncio
async def test_get_tokens_success(auth_service, auth_store, mock_spotify, mock_slack, token_response):
    """Test a successful code exchange."""
    await auth_service.setup_auth("trigger-1", TEST_RESPONSE_URL, "C123", "T123", REDIRECT_URI)
    mock_spotify.exchange_code.return_value = token_response
    mock_spotify.get_profile.return_value = {"id": "spotify-user"}

    try:
        link = await auth_service.get_tokens("auth-code", "trigger-1", REDIRECT_URI)

        assert link == "slack://channel?id=C123&team=T123"
        mock_spotify.exchange_code.assert_called_once_with("auth-code", REDIRECT_URI)
        auth = auth_store.get_auth()
        assert auth.access_token == "new_access_token"
        assert auth.refresh_token == "new_refresh_token"
        assert auth.spotify_user_id == "spotify-user"
        assert auth.expires > datetime.utcnow() + timedelta(minutes=59)
        assert not auth_service.is_auth_expired()
        assert auth_service.scheduler.has_job(REFRESH_JOB)
        mock_slack.reply.assert_called_with(":white_check_mark: Successfully authenticated.", None, TEST_RESPONSE_URL)
    finally:
        await auth_service.scheduler.shutdown()

@pytest.mark.asyncio
async def test_get_tokens_without_setup(auth_service, mock_slack):
    """Test that a stray callback is ignored."""
    assert await auth_service.get_tokens("auth-code", "trigger-1", REDIRECT_URI) is None
    mock_slack.reply.assert_not_called()

@pytest.mark.asyncio
async def test_get_tokens_exchange_failure(auth_service, auth_store, mock_spotify):
    """Test that a failed code exchange is logged and reported as None."""
    await auth_service.setup_auth("trigger-1", TEST_RESPONSE_URL, "C123", "T123", REDIRECT_URI)
    mock_spotify.exchange_code.side_effect = Exception("invalid_grant")

    assert await auth_service.get_tokens("auth-code", "trigger-1", REDIRECT_URI) is None
    assert auth_store.get_auth().access_token is None

@pytest.mark.asyncio
async def test_deny_auth(auth_service, mock_slack):
    await auth_service.setup_auth("trigger-1", TEST_RESPONSE_URL, "C123", "T123", REDIRECT_URI)
    mock_slack.reply.reset_mock()

    await auth_service.deny_auth("access_denied", "trigger-1")
    mock_slack.reply.assert_called_once_with(
        ":no_entry: Spotify authorization failed: access_denied", None, TEST_RESPONSE_URL
    )

    mock_slack.reply.reset_mock()
    await auth_service.deny_auth("access_denied", "other-state")
    mock_slack.reply.assert_not_called()

def test_is_auth_expired(auth_service, auth_store):
    assert auth_service.is_auth_expired()
    assert not auth_service.is_auth_setup()

    auth_store.setup_auth()
    assert auth_service.is_auth_setup()
    assert auth_service.is_auth_expired()

    auth_store.update_tokens("access", "refresh", datetime.utcnow() + timedelta(hours=1))
    assert not auth_service.is_auth_expired()

    auth_store.expire_auth()
    assert auth_service.is_auth_expired()

@pytest.mark.asyncio
async def test_refresh_token(auth_service, auth_store, authenticated, mock_spotify):
    """Test that a refresh stores the renewed token and keeps the refresh token."""
    mock_spotify.renew_access_token.return_value = {"access_token": "renewed", "expires_in": 3600}

    await auth_service.refresh_token()

    mock_spotify.update_tokens.assert_called_with("test_access_token", "test_refresh_token")
    auth = auth_store.get_auth()
    assert auth.access_token == "renewed"
    assert auth.refresh_token == "test_refresh_token"

@pytest.mark.asyncio
async def test_refresh_token_failure_raises(auth_service, authenticated, mock_spotify):
    mock_spotify.renew_access_token.side_effect = Exception("invalid_grant")
    with pytest.raises(Exception):
        await auth_service.refresh_token()

@pytest.mark.asyncio
async def test_refresh_job_failure_expires_once_and_stops(auth_service, auth_store, authenticated, mock_spotify):
    """Test that a failed scheduled refresh expires the credential once and halts the job."""
    scheduler = auth_service.scheduler
    mock_spotify.renew_access_token.side_effect = Exception("invalid_grant")
    auth_service.set_refresh_token_job()
    assert scheduler.has_job(REFRESH_JOB)

    try:
        with patch.object(auth_store, "expire_auth", wraps=auth_store.expire_auth) as expire_auth:
            await scheduler.run_job(REFRESH_JOB)

            expire_auth.assert_called_once()
            assert not scheduler.has_job(REFRESH_JOB)
            assert auth_service.is_auth_expired()

            # No further refresh until re-authentication
            with pytest.raises(KeyError):
                await scheduler.run_job(REFRESH_JOB)
            assert mock_spotify.renew_access_token.call_count == 1
            expire_auth.assert_called_once()
    finally:
        await scheduler.shutdown()

@pytest.mark.asyncio
async def test_reauthentication_restarts_refresh_job(auth_service, authenticated, mock_spotify, token_response):
    scheduler = auth_service.scheduler
    mock_spotify.renew_access_token.side_effect = Exception("invalid_grant")
    auth_service.set_refresh_token_job()

    try:
        await scheduler.run_job(REFRESH_JOB)
        assert not scheduler.has_job(REFRESH_JOB)

        await auth_service.setup_auth("trigger-2", TEST_RESPONSE_URL, "C123", "T123", REDIRECT_URI)
        mock_spotify.exchange_code.return_value = token_response
        mock_spotify.get_profile.return_value = {"id": "spotify-user"}
        await auth_service.get_tokens("auth-code", "trigger-2", REDIRECT_URI)

        assert scheduler.has_job(REFRESH_JOB)
        assert not auth_service.is_auth_expired()
    finally:
        await scheduler.shutdown()

@pytest.mark.asyncio
async def test_initialise_with_expired_auth(auth_service, auth_store, mock_spotify):
    auth_store.setup_auth()
    await auth_service.initialise()

    mock_spotify.renew_access_token.assert_not_called()
    assert not auth_service.scheduler.has_job(REFRESH_JOB)

@pytest.mark.asyncio
async def test_initialise_refreshes_and_schedules(auth_service, auth_store, authenticated, mock_spotify):
    mock_spotify.renew_access_token.return_value = {"access_token": "renewed", "expires_in": 3600}

    try:
        await auth_service.initialise()

        mock_spotify.update_tokens.assert_any_call("test_access_token", "test_refresh_token")
        assert auth_store.get_auth().access_token == "renewed"
        assert auth_service.scheduler.has_job(REFRESH_JOB)
    finally:
        await auth_service.scheduler.shutdown()

@pytest.mark.asyncio
async def test_initialise_refresh_failure_expires_auth(auth_service, authenticated, mock_spotify):
    mock_spotify.renew_access_token.side_effect = Exception("invalid_grant")

    await auth_service.initialise()

    assert auth_service.is_auth_expired()
    assert not auth_service.scheduler.has_job(REFRESH_JOB)

class TestWithSpotifyClient:
    """Refreshes through the real spotipy auth manager, only the token endpoint is patched."""

    @pytest.fixture
    def live_auth_service(self, test_settings, mock_slack, monkeypatch):
        for name in ("SPOTIPY_CLIENT_ID", "SPOTIPY_CLIENT_SECRET", "SPOTIPY_REDIRECT_URI"):
            monkeypatch.delenv(name, raising=False)
        ctx = build_context(test_settings, slack=mock_slack)
        init_db(ctx.config_engine, ctx.tracks_engine)
        auth_store = ctx.auth_service.auth_store
        auth_store.setup_auth()
        auth_store.set_auth(
            "trigger-1",
            datetime.utcnow() + timedelta(minutes=30),
            "C123",
            "T123",
            TEST_RESPONSE_URL,
            REDIRECT_URI
        )
        auth_store.update_tokens("test_access_token", "test_refresh_token", datetime.utcnow() + timedelta(hours=1))
        yield ctx.auth_service
        ctx.config_engine.dispose()
        ctx.tracks_engine.dispose()

    @pytest.fixture
    def token_endpoint(self):
        with patch.object(SpotifyOAuth, "refresh_access_token") as refresh_access_token:
            refresh_access_token.return_value = {"access_token": "renewed", "expires_in": 3600}
            yield refresh_access_token

    @pytest.mark.asyncio
    async def test_initialise_after_restart_keeps_credential(self, live_auth_service, token_endpoint):
        """Test that startup renews a live credential using the stored redirect URI."""
        try:
            await live_auth_service.initialise()

            token_endpoint.assert_called_once_with("test_refresh_token")
            assert not live_auth_service.is_auth_expired()
            assert live_auth_service.auth_store.get_auth().access_token == "renewed"
            assert live_auth_service.scheduler.has_job(REFRESH_JOB)
        finally:
            await live_auth_service.scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_scheduled_refresh_keeps_job(self, live_auth_service, token_endpoint):
        scheduler = live_auth_service.scheduler
        live_auth_service.set_refresh_token_job()

        try:
            await scheduler.run_job(REFRESH_JOB)
            await scheduler.run_job(REFRESH_JOB)

            assert token_endpoint.call_count == 2
            assert scheduler.has_job(REFRESH_JOB)
            assert not live_auth_service.is_auth_expired()
        finally:
            await scheduler.shutdown()
