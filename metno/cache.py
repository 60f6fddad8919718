"""
Tiered caching layer using the CacheTier abstraction.

Provides a cache-aside pattern over an ordered chain of tiers: data is
served from the first tier holding a fresh copy, otherwise fetched using
a fetcher function (which may revalidate the best stale copy) and then
stored in every tier.
"""
import threading
from typing import Any, Callable, Optional, Sequence

from metno.errors import CacheTierError
from metno.freshness import CacheInfo, utcnow
from metno.tiers import CacheTier
from metno.utils import say

# fetcher(prior_entry, prior_info) -> (entry, info)
Fetcher = Callable[[Optional[Any], Optional[CacheInfo]], tuple[Any, CacheInfo]]


class TieredCache:
    """
    Cache implementation over an ordered list of tiers.

    Tiers are consulted in order, so put the fastest, most volatile one
    first. Lookups stop at the first tier with an unexpired entry. Tiers in
    front of the one that answered are back-filled when they hold an older
    copy. After a network fetch every tier is rewritten.
    """

    def __init__(self, tiers: Sequence[CacheTier], tolerate_tier_errors: bool = False,
                 debug: bool = False):
        """
        Initialize cache with a chain of tiers.

        Args:
            tiers: Tiers in lookup order, most preferred first
            tolerate_tier_errors: Log and skip a failing tier instead of
                aborting the retrieval
            debug: Log tier hits, misses and promotions
        """
        self.tiers = list(tiers)
        self.tolerate_tier_errors = tolerate_tier_errors
        self.debug = debug
        self._key_locks: dict[str, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    def _log(self, msg):
        if self.debug:
            say(msg)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def get(self, key: str, fetcher: Fetcher) -> Any:
        """
        Get a document from the tiers or fetch and store it.

        Concurrent calls for the same key are serialized, so only the first
        one goes to the network.

        Args:
            key: Cache key of the document
            fetcher: Called with the best stale (entry, info), or (None, None),
                when no tier has a fresh copy; returns the new (entry, info)

        Returns:
            The cached or fetched document

        Raises:
            CacheTierError: If a tier fails and tolerate_tier_errors is off
        """
        with self._lock_for(key):
            return self._get(key, fetcher)

    def _get(self, key: str, fetcher: Fetcher) -> Any:
        now = utcnow()
        best_entry, best_info, best_index = None, None, None
        last_seen: dict[int, Optional[CacheInfo]] = {}
        fresh = False

        for index, tier in enumerate(self.tiers):
            entry, info = self._tier_get(tier, key)
            if entry is None or info is None:
                self._log(f'No data in {tier.name} for {key}')
                continue

            if best_info is None or info.is_newer_than(best_info):
                best_entry, best_info, best_index = entry, info, index

            if not info.is_expired(now):
                self._log(f'Loaded {key} from {tier.name}')
                fresh = True
                break

            self._log(f'{tier.name} copy of {key} expired')
            last_seen[index] = info

        if fresh:
            self._promote(key, best_entry, best_info, best_index, last_seen)
            return best_entry

        entry, info = fetcher(best_entry, best_info)

        for tier in self.tiers:
            self._tier_set(tier, key, entry, info)

        return entry

    def _promote(self, key: str, entry: Any, info: CacheInfo, origin: int,
                 last_seen: dict[int, Optional[CacheInfo]]) -> None:
        """Copy the answer into faster tiers that don't already hold it."""
        for index in range(origin):
            seen = last_seen.get(index)
            if seen is None or info.is_newer_than(seen):
                tier = self.tiers[index]
                self._log(f'Promoting {key} into {tier.name}')
                self._tier_set(tier, key, entry, info)

    def _tier_get(self, tier: CacheTier, key: str):
        try:
            return tier.get(key)
        except CacheTierError as e:
            if not self.tolerate_tier_errors:
                raise
            say(f'Ignoring {tier.name} read failure for {key}: {e}')
            return None, None

    def _tier_set(self, tier: CacheTier, key: str, entry: Any, info: CacheInfo) -> None:
        try:
            tier.set(key, entry, info)
        except CacheTierError as e:
            if not self.tolerate_tier_errors:
                raise
            say(f'Ignoring {tier.name} write failure for {key}: {e}')

    def clear(self, key: str) -> None:
        """Remove a document from every tier."""
        for tier in self.tiers:
            tier.clear(key)
