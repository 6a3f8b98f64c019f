"""Wiring of stores, clients and services for one running app."""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from sqlalchemy.engine import Engine

from slackify.core.config import Settings
from slackify.db.session import create_db_engine, create_session_factory
from slackify.services.auth_service import AuthService
from slackify.services.player_service import PlayerService
from slackify.services.settings_service import SettingsService
from slackify.services.skip_service import SkipService
from slackify.services.slack_service import SlackClient
from slackify.services.tracks_service import TracksService
from slackify.storage.sql import SQLAuthStore, SQLTrackStore
from slackify.tasks.scheduler import RefreshScheduler
from slackify.utils.spotify import SpotifyClient

@dataclass
class AppContext:
    settings: Settings
    config_engine: Engine
    tracks_engine: Engine
    scheduler: RefreshScheduler
    spotify: SpotifyClient
    slack: SlackClient
    auth_service: AuthService
    settings_service: SettingsService
    player_service: PlayerService
    tracks_service: TracksService
    skip_service: SkipService

def build_context(
    settings: Settings,
    spotify: Optional[SpotifyClient] = None,
    slack: Optional[SlackClient] = None
) -> AppContext:
    """Build every component from settings. Clients may be injected for tests."""
    config_engine = create_db_engine(settings.CONFIG_DATABASE_URL)
    tracks_engine = create_db_engine(settings.TRACKS_DATABASE_URL)
    auth_store = SQLAuthStore(create_session_factory(config_engine))
    track_store = SQLTrackStore(
        create_session_factory(tracks_engine),
        search_ttl=timedelta(hours=settings.SEARCH_TTL_HOURS)
    )

    scheduler = RefreshScheduler()
    spotify = spotify or SpotifyClient(settings)
    slack = slack or SlackClient()

    settings_service = SettingsService(auth_store, spotify, slack)
    return AppContext(
        settings=settings,
        config_engine=config_engine,
        tracks_engine=tracks_engine,
        scheduler=scheduler,
        spotify=spotify,
        slack=slack,
        auth_service=AuthService(auth_store, spotify, slack, scheduler, settings),
        settings_service=settings_service,
        player_service=PlayerService(spotify, slack, settings_service),
        tracks_service=TracksService(spotify, slack, track_store, settings),
        skip_service=SkipService(spotify, slack, track_store, settings),
    )
