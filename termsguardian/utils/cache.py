import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Any, Optional

from ..analyzers.base import DefinitionSource

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class DictionaryCacheEntry:
    word: str
    definition: str
    source: DefinitionSource
    timestamp: float


class DefinitionCache:
    """In-memory TTL cache for resolved definitions, keyed by lowercase word.

    Expired entries are evicted lazily on the next lookup. Writes are
    last-write-wins.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ttl_ms = ttl_ms
        self._clock = clock or _now_ms
        self._entries: Dict[str, DictionaryCacheEntry] = {}

    @staticmethod
    def _key(word: str) -> str:
        return word.lower().strip()

    def get(self, word: str) -> Optional[DictionaryCacheEntry]:
        """Get a cached entry if it is still inside the TTL window."""
        key = self._key(word)
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp >= self.ttl_ms:
            del self._entries[key]
            logger.debug(f"Cache expired for {key}")
            return None

        logger.debug(f"Cache hit for {key}")
        return entry

    def set(
        self, word: str, definition: str, source: DefinitionSource
    ) -> DictionaryCacheEntry:
        """Store a definition, overwriting any previous entry."""
        key = self._key(word)
        entry = DictionaryCacheEntry(
            word=key,
            definition=definition,
            source=source,
            timestamp=self._clock(),
        )
        self._entries[key] = entry
        return entry

    def invalidate(self, word: str) -> bool:
        """Remove one cached word."""
        return self._entries.pop(self._key(word), None) is not None

    def clear(self) -> int:
        """Clear all cached definitions."""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared {count} cached definitions")
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "entry_count": len(self._entries),
            "ttl_hours": self.ttl_ms / 3_600_000,
        }
