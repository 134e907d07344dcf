"""Client library - session, entry sync, views and the wrapped generator"""
from datewrapped.client.api_client import ApiClient
from datewrapped.client.session import AuthEvent, AuthSession, FileTokenStore, MemoryTokenStore, SessionState
from datewrapped.client.repository import EntryRepositoryClient
from datewrapped.client.row_editor import Row, RowEditor, blank_entry, coerce_field
from datewrapped.client.presentation import COLUMNS, CardView, Column, TableView, fuzzy_match
from datewrapped.client.session_store import (
    FileWrappedSessionStore,
    InMemoryWrappedSessionStore,
    WrappedSessionStore,
)
from datewrapped.client.wrapped import GeneratorState, WrappedGenerator

__all__ = [
    "ApiClient",
    "AuthEvent",
    "AuthSession",
    "FileTokenStore",
    "MemoryTokenStore",
    "SessionState",
    "EntryRepositoryClient",
    "Row",
    "RowEditor",
    "blank_entry",
    "coerce_field",
    "COLUMNS",
    "CardView",
    "Column",
    "TableView",
    "fuzzy_match",
    "FileWrappedSessionStore",
    "InMemoryWrappedSessionStore",
    "WrappedSessionStore",
    "GeneratorState",
    "WrappedGenerator",
]
