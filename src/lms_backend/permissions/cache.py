"""
Read-through cache for ACL entries.

Keeps an in-process snapshot of the entries of each content item, keyed by
its ContentRef. The entry store invalidates a snapshot whenever it grants,
revokes or deletes entries of that content item.

Invalidation is local to the process. With several workers, a change made
by one worker is seen by the others only once their snapshot expires, so
ACL_CACHE_TTL bounds how long a revoked permission may still be honoured.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, Optional, Tuple
import logging

from lms_backend.interface.permissions import ContentRef, GranteeType, PermissionType

logger = logging.getLogger(__name__)

AclKey = Tuple[PermissionType, GranteeType, int]


class AclEntryCache:
    """
    In-memory TTL cache of ACL snapshots per content item.

    Every invalidation bumps a generation counter of the content item, and
    `clear` bumps a global epoch. A snapshot loaded before either bump is
    not stored.
    """

    def __init__(self, ttl_seconds: int = 300):
        """
        Initialize ACL cache

        Args:
            ttl_seconds: Time to live for cache entries in seconds (default 5 minutes)
        """
        self.ttl_seconds = ttl_seconds
        self._snapshots: Dict[ContentRef, FrozenSet[AclKey]] = {}
        self._cache_timestamps: Dict[ContentRef, datetime] = {}
        self._generations: Dict[ContentRef, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def _is_cache_valid(self, ref: ContentRef) -> bool:
        """Check if cache entry is still valid"""
        if ref not in self._cache_timestamps:
            return False

        timestamp = self._cache_timestamps[ref]
        return datetime.now() - timestamp < timedelta(seconds=self.ttl_seconds)

    def _version(self, ref: ContentRef) -> Tuple[int, int]:
        return self._epoch, self._generations.get(ref, 0)

    def version(self, ref: ContentRef) -> Tuple[int, int]:
        with self._lock:
            return self._version(ref)

    def get(self, ref: ContentRef) -> Optional[FrozenSet[AclKey]]:
        with self._lock:
            if ref in self._snapshots and self._is_cache_valid(ref):
                logger.debug(f"ACL cache hit for {ref}")
                return self._snapshots[ref]
        logger.debug(f"ACL cache miss for {ref}")
        return None

    def set(self, ref: ContentRef, snapshot: FrozenSet[AclKey], version: Optional[Tuple[int, int]] = None) -> bool:
        """Store a snapshot, unless it was loaded at a version that has since been invalidated"""
        with self._lock:
            if version is not None and version != self._version(ref):
                logger.debug(f"Discarding outdated ACL snapshot of {ref}")
                return False
            self._snapshots[ref] = snapshot
            self._cache_timestamps[ref] = datetime.now()
            return True

    def get_or_load(self, ref: ContentRef, loader: Callable[[ContentRef], FrozenSet[AclKey]]) -> FrozenSet[AclKey]:
        snapshot = self.get(ref)
        if snapshot is None:
            version = self.version(ref)
            snapshot = loader(ref)
            self.set(ref, snapshot, version)
        return snapshot

    def invalidate(self, ref: ContentRef):
        with self._lock:
            self._snapshots.pop(ref, None)
            self._cache_timestamps.pop(ref, None)
            self._generations[ref] = self._generations.get(ref, 0) + 1

    def clear(self):
        """Clear the entire cache"""
        with self._lock:
            self._snapshots.clear()
            self._cache_timestamps.clear()
            self._generations.clear()
            self._epoch += 1
        logger.info("ACL entry cache cleared")

    def __len__(self) -> int:
        return len(self._snapshots)


# Shared instance, used when ACL_CACHE_ENABLED is set
acl_entry_cache = None


def get_acl_entry_cache() -> Optional[AclEntryCache]:
    global acl_entry_cache
    from lms_backend.settings import settings

    if not settings.ACL_CACHE_ENABLED:
        return None
    if acl_entry_cache is None:
        acl_entry_cache = AclEntryCache(ttl_seconds=settings.ACL_CACHE_TTL)
    return acl_entry_cache
