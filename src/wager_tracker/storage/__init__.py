"""Persistence: local JSON blob store with an optional remote mirror."""

from .local_store import LocalStore
from .remote_mirror import RemoteMirror
from .repository import SaveReport, SyncConfig, WagerRepository, build_repository

__all__ = [
    "LocalStore",
    "RemoteMirror",
    "SaveReport",
    "SyncConfig",
    "WagerRepository",
    "build_repository",
]
