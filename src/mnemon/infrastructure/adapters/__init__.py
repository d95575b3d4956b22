from .snapshot import SnapshotCardRepository

__all__ = ["SnapshotCardRepository"]
