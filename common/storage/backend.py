"""Abstract key-value storage backend."""
from abc import ABC, abstractmethod
from typing import List, Optional


class KeyValueBackend(ABC):
    """String key → string value storage, the shape of browser localStorage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Delete key, return True if it existed."""
        pass

    @abstractmethod
    def keys(self, prefix: str = '') -> List[str]:
        """List stored keys with optional prefix."""
        pass
