"""
Data management infrastructure for paused interviews and candidate progress.
"""

from .store import SnapshotStore, ProgressStore

__all__ = [
    'SnapshotStore',
    'ProgressStore'
]
