"""Test configuration and fixtures."""

import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

from slackify.core.config import Settings
from slackify.core.context import build_context
from slackify.db.init_db import init_db
from slackify.services.slack_service import SlackClient
from slackify.utils.spotify import SpotifyClient

TEST_RESPONSE_URL = "https://hooks.slack.com/commands/T123/456/abc"

@pytest.fixture
def test_settings():
    """Settings backed by in-memory document stores."""
    return Settings(
        _env_file=None,
        SPOTIFY_CLIENT_ID="test_client_id",
        SPOTIFY_CLIENT_SECRET="test_client_secret",
        CONFIG_DATABASE_URL="sqlite://",
        TRACKS_DATABASE_URL="sqlite://",
    )

@pytest.fixture
def mock_spotify():
    """Mock Spotify client for testing."""
    spotify = MagicMock(spec=SpotifyClient)
    spotify.access_token = None
    spotify.refresh_token = None
    spotify.redirect_uri = None
    spotify.get_playback_state.return_value = None
    spotify.get_devices.return_value = []
    spotify.get_current_track.return_value = None
    return spotify

@pytest.fixture
def mock_slack():
    """Mock Slack client, every reply succeeds."""
    slack = AsyncMock(spec=SlackClient)
    slack.reply.return_value = True
    slack.in_channel_reply.return_value = True
    slack.replace_original.return_value = True
    slack.delete_original.return_value = True
    return slack

@pytest.fixture
def context(test_settings, mock_spotify, mock_slack):
    """Fully wired components with mocked remote services."""
    ctx = build_context(test_settings, spotify=mock_spotify, slack=mock_slack)
    init_db(ctx.config_engine, ctx.tracks_engine)
    yield ctx
    ctx.config_engine.dispose()
    ctx.tracks_engine.dispose()

@pytest.fixture
def auth_store(context):
    return context.auth_service.auth_store

@pytest.fixture
def track_store(context):
    return context.tracks_service.track_store

@pytest.fixture
def authenticated(auth_store):
    """Store a live credential."""
    auth_store.setup_auth()
    auth_store.set_auth(
        "trigger-1",
        datetime.utcnow() + timedelta(minutes=30),
        "C123",
        "T123",
        TEST_RESPONSE_URL
    )
    auth_store.update_tokens(
        "test_access_token",
        "test_refresh_token",
        datetime.utcnow() + timedelta(hours=1)
    )
    return auth_store.get_auth()

@pytest.fixture
def test_tracks():
    """Simplified search results."""
    return [
        {
            "uri": f"spotify:track:{i}",
            "name": f"Track {i}",
            "artists": f"Artist {i}",
            "album": f"Album {i}",
            "image": None,
            "url": f"https://open.spotify.com/track/{i}",
        }
        for i in range(7)
    ]
