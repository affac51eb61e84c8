"""Key-value storage interface."""

from typing import Protocol


class KeyValueStore(Protocol):
    """Interface for persisting whole-collection snapshots under fixed keys."""

    def get(self, key: str) -> str | None:
        """Read the snapshot stored under key. Returns None if not found."""
        ...

    def set(self, key: str, value: str) -> None:
        """Write/overwrite the snapshot stored under key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...
