"""Persisted document collections."""

from slackify.models.auth import AuthRecord, SettingRecord
from slackify.models.tracks import SearchRecord, HistoryRecord, SkipRecord

__all__ = [
    'AuthRecord',
    'SettingRecord',
    'SearchRecord',
    'HistoryRecord',
    'SkipRecord',
]
