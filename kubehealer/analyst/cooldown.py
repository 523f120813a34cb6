"""Per-identity diagnosis cooldown tracking.

State is memory-resident only and is lost on restart. Entries are never
evicted; the map is bounded by the number of pods seen during the
process lifetime.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

DEFAULT_COOLDOWN_S: float = 60.0
_DEFAULT_SHARDS: int = 16


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: dict[str, float] = {}


class CooldownTracker:
    """Sharded map of identity -> last scheduled diagnosis time.

    Each key's read-compare-write happens under its shard's lock; there is
    no global lock, so unrelated identities never contend.
    """

    def __init__(
        self,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        shards: int = _DEFAULT_SHARDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._cooldown_s = cooldown_s
        self._clock = clock
        self._shards = tuple(_Shard() for _ in range(shards))

    @property
    def cooldown_s(self) -> float:
        return self._cooldown_s

    def _shard(self, key: str) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def try_acquire(self, key: str) -> bool:
        """Record a diagnosis for ``key`` unless one was recorded within the window.

        Returns True when the caller may dispatch a diagnosis.
        """
        now = self._clock()
        shard = self._shard(key)
        with shard.lock:
            last = shard.entries.get(key)
            if last is not None and now - last < self._cooldown_s:
                return False
            shard.entries[key] = now
            return True

    def release(self, key: str) -> None:
        """Forget the entry for ``key``, e.g. when its dispatch was dropped."""
        shard = self._shard(key)
        with shard.lock:
            shard.entries.pop(key, None)

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total
