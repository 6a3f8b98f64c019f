"""Application configuration."""
from functools import lru_cache
from typing import List, Optional, Any
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

def clean_int_value(v: Any) -> int:
    """Clean integer values from environment variables."""
    if isinstance(v, str):
        # Remove any comments and whitespace
        v = v.split('#')[0].strip()
    return int(v)

class Settings(BaseSettings):
    # Application settings
    PROJECT_NAME: str = "Slackify"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Document store settings
    CONFIG_DATABASE_URL: str = "sqlite:///./config.db"
    TRACKS_DATABASE_URL: str = "sqlite:///./tracks.db"

    # Spotify OAuth settings
    SPOTIFY_CLIENT_ID: str = ""
    SPOTIFY_CLIENT_SECRET: str = ""
    SPOTIFY_REDIRECT_URI: Optional[str] = None
    SPOTIFY_REDIRECT_PATH: str = "auth/spotify/callback"
    SPOTIFY_SCOPES: List[str] = [
        "user-read-private",
        "user-read-email",
        "user-read-playback-state",
        "user-modify-playback-state",
        "user-read-currently-playing",
    ]
    SPOTIFY_REQUESTS_TIMEOUT: int = 10

    # Slack settings
    SLACK_SIGNING_SECRET: Optional[str] = None
    SLACK_REQUEST_MAX_AGE: int = 60 * 5

    # Auth lifecycle
    AUTH_WINDOW_MINUTES: int = 30
    REFRESH_INTERVAL_MINUTES: int = 30

    # Tracks
    SEARCH_LIMIT: int = 30
    SEARCH_PAGE_SIZE: int = 3
    HISTORY_WINDOW_HOURS: int = 4
    SEARCH_TTL_HOURS: int = 24
    SKIP_VOTES: int = 3

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Allow extra fields in the environment
    )

    # Validators for integer fields
    _clean_ints = field_validator('PORT', 'SPOTIFY_REQUESTS_TIMEOUT', 'SLACK_REQUEST_MAX_AGE',
                                  'AUTH_WINDOW_MINUTES', 'REFRESH_INTERVAL_MINUTES',
                                  'SEARCH_LIMIT', 'SEARCH_PAGE_SIZE', 'HISTORY_WINDOW_HOURS', 'SEARCH_TTL_HOURS',
                                  'SKIP_VOTES', mode='before')(clean_int_value)

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
