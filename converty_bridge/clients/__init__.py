"""Expose constructed client wrappers."""

from .converty_api import ConvertyAPIClient
from .converty_auth import ConvertyOAuthClient
from .record_store import SQLiteRecordStore
from .state_store import SQLiteStateStore
from .token_store import SQLiteTokenStore

__all__ = [
    "ConvertyAPIClient",
    "ConvertyOAuthClient",
    "SQLiteRecordStore",
    "SQLiteStateStore",
    "SQLiteTokenStore",
]
