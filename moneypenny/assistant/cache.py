"""
Host Cache — TTL Cache for Discovered Assistant Hosts

One entry per assistant name. Entries are overwritten on re-resolution
and never explicitly deleted; an entry is usable only while
now < expires_at.

The cache is process-wide and shared by concurrent requests without
locking. Writes for the same key are last-write-wins, which is fine
because every entry is a re-derivation of the same upstream fact.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol


DEFAULT_HOST_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class HostCacheEntry:
    """A resolved base URL and the moment it stops being usable."""
    assistant_name: str
    base_url: str
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class HostCache(Protocol):
    """Interface the HostResolver depends on."""

    def get(self, assistant_name: str) -> Optional[HostCacheEntry]:
        """Return the entry if present and unexpired, else None."""
        ...

    def put(self, assistant_name: str, base_url: str) -> HostCacheEntry:
        """Store base_url with a fresh expiry and return the entry."""
        ...


class InMemoryHostCache:
    """
    Dict-backed HostCache with an injectable clock.
    
    Args:
        ttl_seconds: Lifetime of an entry from the moment it is stored
        clock: Monotonic time source in seconds (tests pass a fake)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_HOST_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, HostCacheEntry] = {}

    def get(self, assistant_name: str) -> Optional[HostCacheEntry]:
        entry = self._entries.get(assistant_name)
        if entry is not None and entry.is_fresh(self._clock()):
            return entry
        return None

    def put(self, assistant_name: str, base_url: str) -> HostCacheEntry:
        entry = HostCacheEntry(
            assistant_name=assistant_name,
            base_url=base_url,
            expires_at=self._clock() + self.ttl_seconds,
        )
        self._entries[assistant_name] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
