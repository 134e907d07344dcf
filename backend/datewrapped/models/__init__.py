"""Data models"""
from datewrapped.models.user import User
from datewrapped.models.dating_entry import DatingEntry
from datewrapped.models.wrapped_share import WrappedShare

__all__ = [
    "User",
    "DatingEntry",
    "WrappedShare",
]
