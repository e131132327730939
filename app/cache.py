"""
In-process cache for delivery schedule policies
Avoids a database round trip on every delivery date computation
"""
import logging
from threading import Lock
from typing import Callable, Optional

from .domain.scheduling.calendar import PolicySnapshot

logger = logging.getLogger(__name__)


class PolicyCache:
    """Lock-guarded category -> PolicySnapshot map with explicit invalidation (no TTL)"""

    def __init__(self, loader: Callable[[str], PolicySnapshot]):
        self._loader = loader
        self._entries: dict[str, PolicySnapshot] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    def resolve(self, category: str) -> PolicySnapshot:
        """Return the cached policy, loading it from the store on a miss.

        The load happens under the lock so concurrent misses for the same category
        load once, and an invalidate never interleaves with a half-written entry.
        Loader errors propagate and nothing is cached.
        """
        with self._lock:
            policy = self._entries.get(category)
            if policy is not None:
                self.hits += 1
                logger.debug(f"✅ Policy cache HIT: {category}")
                return policy

            self.misses += 1
            logger.debug(f"❌ Policy cache MISS: {category}")
            policy = self._loader(category)
            self._entries[category] = policy
            return policy

    def peek(self, category: str) -> Optional[PolicySnapshot]:
        """Cached value without loading"""
        with self._lock:
            return self._entries.get(category)

    def invalidate(self, category: Optional[str] = None) -> int:
        """Drop one category (or every category when None). Returns entries dropped."""
        with self._lock:
            if category is None:
                dropped = len(self._entries)
                self._entries.clear()
            else:
                dropped = 1 if self._entries.pop(category, None) is not None else 0
        logger.debug(f"🧹 Policy cache invalidated: {category or 'all'} ({dropped} entries)")
        return dropped

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": sorted(self._entries),
                "hits": self.hits,
                "misses": self.misses,
            }


def load_policy_from_store(category: str) -> PolicySnapshot:
    """Default loader: read one policy through a short-lived session"""
    from .database import SessionLocal
    from .domain.scheduling.repository import SchedulePolicyRepository

    db = SessionLocal()
    try:
        return SchedulePolicyRepository.get_snapshot(db, category)
    finally:
        db.close()


# Process-wide instance, created once at start-up and handed to consumers via dependencies
policy_cache = PolicyCache(load_policy_from_store)


def get_policy_cache() -> PolicyCache:
    """FastAPI dependency for the shared policy cache"""
    return policy_cache
