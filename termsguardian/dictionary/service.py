import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from .base import BaseDefinitionSource
from .remote import RemoteDefinitionSource
from .sources import StaticDefinitionSource, load_default_corpora
from ..errors import DefinitionLookupError
from ..utils.cache import DEFAULT_TTL_MS, DefinitionCache, DictionaryCacheEntry
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_LOOKUP_TIMEOUT_MS = 5000
REMOTE_WORKERS = 4


class DictionaryService:
    """
    Layered definition lookup, first hit wins:

      1. in-memory TTL cache (keyed by lowercase word)
      2. static legal-definitions table
      3. bundled dictionary corpora, in rank order
      4. optional remote API, bounded by a timeout

    Every resolved definition is written back into the cache. The cache is
    the only mutable state and belongs to this instance.
    """

    def __init__(
        self,
        legal_definitions: Optional[StaticDefinitionSource] = None,
        corpora: Optional[Sequence[BaseDefinitionSource]] = None,
        remote: Optional[BaseDefinitionSource] = None,
        ttl_ms: int = DEFAULT_TTL_MS,
        timeout_ms: int = DEFAULT_LOOKUP_TIMEOUT_MS,
        clock: Optional[Callable[[], float]] = None,
        prioritize_legal_terms: bool = True,
    ):
        if legal_definitions is None:
            legal_definitions = StaticDefinitionSource({})
        self.legal_definitions = legal_definitions
        self.corpora: List[BaseDefinitionSource] = list(corpora or [])
        self.remote = remote
        self.timeout_ms = timeout_ms
        self.prioritize_legal_terms = prioritize_legal_terms
        self.cache = DefinitionCache(ttl_ms=ttl_ms, clock=clock)
        self._thread_pool: Optional[ThreadPoolExecutor] = None
        self._remote_slots: Optional[asyncio.Semaphore] = None
        self._slots_loop = None

        counts = ", ".join(f"{c.name}={len(c)}" for c in self.corpora) or "none"
        logger.info(f"Dictionaries loaded: {counts}")

    @classmethod
    def from_config(cls, config=None, clock: Optional[Callable[[], float]] = None):
        """Build the default service: bundled tables, optional remote tier."""
        from ..config import AnalysisConfig

        config = config or AnalysisConfig()
        remote = None
        if config.remote_lookup and config.remote_url:
            remote = RemoteDefinitionSource(
                config.remote_url, timeout=config.lookup_timeout_ms / 1000
            )
        return cls(
            legal_definitions=StaticDefinitionSource(),
            corpora=load_default_corpora(),
            remote=remote,
            ttl_ms=config.cache_ttl_ms,
            timeout_ms=config.lookup_timeout_ms,
            clock=clock,
            prioritize_legal_terms=config.prioritize_legal_terms,
        )

    def _local_sources(self) -> List[BaseDefinitionSource]:
        if self.prioritize_legal_terms:
            return [self.legal_definitions, *self.corpora]
        return [*self.corpora, self.legal_definitions]

    def has_definition(self, word: str) -> bool:
        """Synchronous check of the static table and corpora (no cache, no remote)."""
        key = (word or "").lower().strip()
        if not key:
            return False
        return any(s.define(key) for s in self._local_sources())

    async def lookup(self, word: str) -> Optional[DictionaryCacheEntry]:
        """Resolve a definition; None when no tier has one. Never raises."""
        if not word or not isinstance(word, str):
            return None
        key = word.lower().strip()
        if not key:
            return None

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        for source in self._local_sources():
            try:
                definition = source.define(key)
            except Exception as e:
                logger.warning(f"{source.name} lookup failed for {key!r}: {e}")
                continue
            if definition:
                return self.cache.set(key, definition, source.source)

        if self.remote is not None:
            definition = await self._remote_lookup(key)
            if definition:
                return self.cache.set(key, definition, self.remote.source)

        return None

    def _slots(self, loop) -> asyncio.Semaphore:
        # one semaphore per event loop, sized to the worker pool
        if self._remote_slots is None or self._slots_loop is not loop:
            self._remote_slots = asyncio.Semaphore(REMOTE_WORKERS)
            self._slots_loop = loop
        return self._remote_slots

    async def _remote_lookup(self, word: str) -> Optional[str]:
        if self._thread_pool is None:
            self._thread_pool = ThreadPoolExecutor(max_workers=REMOTE_WORKERS)
        loop = asyncio.get_running_loop()
        slots = self._slots(loop)

        # The timeout only starts once a worker is free; queued lookups wait
        # on the semaphore instead of burning their budget in the pool queue.
        await slots.acquire()
        future = loop.run_in_executor(self._thread_pool, self.remote.define, word)

        def _release(done):
            # a timed-out call keeps its worker until the request returns
            slots.release()
            if not done.cancelled():
                done.exception()

        future.add_done_callback(_release)
        try:
            return await asyncio.wait_for(
                asyncio.shield(future), timeout=self.timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.warning(f"Remote lookup timed out for {word!r}")
            return None
        except DefinitionLookupError as e:
            logger.warning(str(e))
            return None
        except Exception as e:
            logger.error(f"Unexpected remote lookup error for {word!r}: {e}")
            return None

    def clear_cache(self) -> int:
        """Empty the in-memory cache only; tables and corpora stay loaded."""
        return self.cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "legal_definitions_count": len(self.legal_definitions),
            "corpora": {c.name: len(c) for c in self.corpora},
            "remote_enabled": self.remote is not None,
            "cache_size": len(self.cache),
        }

    def close(self) -> None:
        if self._thread_pool is not None:
            self._thread_pool.shutdown(wait=False)
            self._thread_pool = None
