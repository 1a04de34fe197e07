"""
JSON file stores for paused interviews and candidate progress.

The engine treats snapshots as opaque; these stores only write what they
are given and hand it back verbatim.
"""
import json
import logging
import os
from typing import Optional

from ...interview.models import PausedSnapshot, CandidateProgress

logger = logging.getLogger("store")


def _write_json(path: str, data) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)


class SnapshotStore:
    """Keeps at most one paused interview on disk."""

    def __init__(self, path: str):
        self.path = path

    def save(self, snapshot: PausedSnapshot) -> None:
        _write_json(self.path, snapshot.to_dict())
        logger.info("Saved paused interview with %d turns to %s", len(snapshot.turns), self.path)

    def load(self) -> Optional[PausedSnapshot]:
        """Load the paused interview; a corrupt file is discarded."""
        if not os.path.exists(self.path):
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                snapshot = PausedSnapshot.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error("Failed to parse paused interview session: %s", e)
            self.clear()
            return None

        logger.info("Loaded paused interview with %d turns", len(snapshot.turns))
        return snapshot

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
            logger.info("Cleared paused interview")


class ProgressStore:
    """Candidate tier and interview counter."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> CandidateProgress:
        if not os.path.exists(self.path):
            return CandidateProgress()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return CandidateProgress.from_dict(json.load(f))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("Progress file unreadable, starting fresh: %s", e)
            return CandidateProgress()

    def save(self, progress: CandidateProgress) -> None:
        _write_json(self.path, progress.to_dict())
        logger.info("Saved progress: tier=%s interviews_completed=%d",
                    progress.tier.value, progress.interviews_completed)
