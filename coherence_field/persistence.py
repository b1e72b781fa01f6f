"""
Snapshot persistence.

One JSON file per epoch (snapshot_00000042.json) in a store directory.
Files that cannot be parsed are skipped when listing, so a partially
written file never hides the snapshots before it.

(c) 2026 Anywave Creations
MIT License
"""

from pathlib import Path
from typing import List, Optional
import json
import logging

from .models import FieldSnapshot

log = logging.getLogger(__name__)


class SnapshotStore:
    """Persists field snapshots to disk.

    Args:
        directory: Path to directory for snapshot JSON files.
                   Created if it does not exist.
    """

    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, epoch: int) -> Path:
        return self.directory / f"snapshot_{epoch:08d}.json"

    def save(self, snapshot: FieldSnapshot) -> Path:
        """Write a snapshot, replacing any earlier file for the same epoch."""
        filepath = self.path_for(snapshot.epoch)
        tmp = filepath.with_suffix('.json.tmp')
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(snapshot.to_dict(), f, indent=2)
        tmp.replace(filepath)
        log.debug("Saved snapshot for epoch %d to %s", snapshot.epoch, filepath)
        return filepath

    def load(self, epoch: int) -> FieldSnapshot:
        """Load the snapshot of one epoch.

        Raises:
            FileNotFoundError: No snapshot was saved for that epoch.
        """
        with open(self.path_for(epoch), 'r', encoding='utf-8') as f:
            return FieldSnapshot.from_dict(json.load(f))

    def list_epochs(self) -> List[int]:
        """Epochs with a readable snapshot, ascending."""
        epochs = []
        for filepath in self.directory.glob("snapshot_*.json"):
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                epochs.append(int(data['field']['epoch']))
            except (json.JSONDecodeError, KeyError, ValueError, TypeError):
                log.warning("Skipping unreadable snapshot file %s", filepath)
                continue
        return sorted(epochs)

    def load_latest(self) -> Optional[FieldSnapshot]:
        """Most recent readable snapshot, or None if the store is empty."""
        epochs = self.list_epochs()
        if not epochs:
            return None
        return self.load(epochs[-1])
