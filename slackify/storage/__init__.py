from slackify.storage.base import AuthStore, SettingsStore, TrackStore
from slackify.storage.sql import SQLAuthStore, SQLTrackStore

__all__ = ['AuthStore', 'SettingsStore', 'TrackStore', 'SQLAuthStore', 'SQLTrackStore']
