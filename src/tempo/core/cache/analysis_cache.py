"""Multi-layer cache for AI analysis results.

Layers, checked in order:

1. memory  -- exact context key, short TTL
2. persistent -- exact context key, long TTL, optionally backed by SQLite;
   hits are promoted back into memory
3. similar -- best-scoring entry from a neighbouring context

Every hit is a deep copy passed through ``on_adapt``, so a served payload
looks freshly generated while the stored entry keeps its original stamps.

A hit whose stored energy level differs from the requested one by more
than 20% (relative) is never served; energy swings that large need a new
analysis.
"""

from __future__ import annotations

import copy
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal, Protocol

logger = logging.getLogger(__name__)

CacheLayer = Literal["memory", "persistent", "similar"]

EXACT_SIMILARITY_THRESHOLD = 0.95
SIMILAR_MATCH_THRESHOLD = 0.7
ENERGY_CHANGE_THRESHOLD = 0.2


# ---------------------------------------------------------------------------
# Context + scoring
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CacheContext:
    """The request features that decide whether a cached analysis still fits."""

    energy: float
    time_of_day: str
    tags: tuple[str, ...]
    humidity: float
    pressure_trend: float

    def key(self) -> str:
        """Bucketed cache key, e.g. ``60_morning_sleep,work_4_-2``."""
        energy_bucket = math.floor(self.energy / 10) * 10
        tags = ",".join(sorted(self.tags))
        return (
            f"{energy_bucket}_{self.time_of_day}_{tags}_"
            f"{math.floor(self.humidity / 10)}_{math.floor(self.pressure_trend)}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "energy": self.energy,
            "time_of_day": self.time_of_day,
            "tags": list(self.tags),
            "humidity": self.humidity,
            "pressure_trend": self.pressure_trend,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheContext:
        return cls(
            energy=float(data["energy"]),
            time_of_day=str(data["time_of_day"]),
            tags=tuple(data.get("tags", ())),
            humidity=float(data["humidity"]),
            pressure_trend=float(data["pressure_trend"]),
        )


def exact_similarity(a: CacheContext, b: CacheContext) -> float:
    """Closeness of two contexts that already share a key (1.0 = identical)."""
    energy_diff = abs(a.energy - b.energy) / 100
    humidity_diff = abs(a.humidity - b.humidity) / 100
    pressure_diff = abs(a.pressure_trend - b.pressure_trend) / 20
    return 1 - (energy_diff + humidity_diff + pressure_diff) / 3


def similarity(a: CacheContext, b: CacheContext) -> float:
    """Weighted similarity in [0, 1] between two arbitrary contexts.

    energy 0.4, time of day 0.2, tag overlap (Jaccard) 0.3, humidity 0.1.
    """
    score = 0.4 * max(0.0, 1 - abs(a.energy - b.energy) / 100)
    if a.time_of_day == b.time_of_day:
        score += 0.2

    tags_a, tags_b = set(a.tags), set(b.tags)
    union = tags_a | tags_b
    jaccard = len(tags_a & tags_b) / len(union) if union else 1.0
    score += 0.3 * jaccard

    score += 0.1 * max(0.0, 1 - abs(a.humidity - b.humidity) / 100)
    return score


def significant_energy_change(
    previous: float, current: float, threshold: float = ENERGY_CHANGE_THRESHOLD
) -> bool:
    """True when ``current`` moved more than ``threshold`` (relative) from ``previous``."""
    if previous == 0:
        return current != 0
    return abs(current - previous) / abs(previous) > threshold


# ---------------------------------------------------------------------------
# Entries + storage protocol
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    """A cached analysis payload and the context it was produced for."""

    key: str
    context: CacheContext
    payload: dict[str, Any]
    created_at: float
    expires_at: float
    user_id: str = ""

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class CacheLookup:
    """Outcome of a cache lookup; ``payload`` is None on a miss."""

    payload: dict[str, Any] | None = None
    layer: CacheLayer | None = None
    similarity: float = 0.0
    key: str = ""

    @property
    def hit(self) -> bool:
        return self.payload is not None


class CacheStore(Protocol):
    """Durable backing for the persistent layer."""

    def save_entry(self, entry: CacheEntry) -> None: ...

    def load_entries(self, now: float) -> list[CacheEntry]: ...

    def delete_entry(self, key: str) -> None: ...

    def delete_expired(self, now: float) -> int: ...

    def clear(self) -> None: ...


@dataclass
class CacheStats:
    memory_hits: int = 0
    persistent_hits: int = 0
    similar_hits: int = 0
    misses: int = 0
    energy_invalidations: int = 0


def _identity_adapt(payload: dict[str, Any], now: float) -> dict[str, Any]:
    return payload


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class IntelligentAnalysisCache:
    """Context-aware cache for AI analysis payloads.

    Args:
        memory_ttl: seconds a fresh result is served from memory.
        persistent_ttl: seconds a result survives in the persistent layer;
            also the maximum age of an entry adapted from a similar context.
        max_entries: cap per layer; the oldest entries are evicted first.
        store: optional durable store for the persistent layer.
        on_adapt: refreshes timestamps on every payload served from the
            cache. Receives a deep copy.
        clock: wall-clock seconds.
    """

    def __init__(
        self,
        memory_ttl: float = 3600,
        persistent_ttl: float = 14400,
        max_entries: int = 100,
        store: CacheStore | None = None,
        on_adapt: Callable[[dict[str, Any], float], dict[str, Any]] = _identity_adapt,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.memory_ttl = memory_ttl
        self.persistent_ttl = persistent_ttl
        self.max_entries = max_entries
        self._store = store
        self._on_adapt = on_adapt
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}
        self._persistent: dict[str, CacheEntry] = {}
        self._stats = CacheStats()

        if store is not None:
            for entry in store.load_entries(self._clock()):
                self._persistent[entry.key] = entry
            logger.info("Loaded %d persistent cache entries", len(self._persistent))

    @property
    def persistent(self) -> bool:
        return self._store is not None

    # -- lookup ---------------------------------------------------------

    def get(self, context: CacheContext) -> CacheLookup:
        """Find a usable cached payload for ``context``."""
        now = self._clock()
        key = context.key()

        hit = self._exact(self._memory, context, key, now)
        if hit is not None:
            self._stats.memory_hits += 1
            logger.info("Analysis cache hit (memory): %s", key)
            payload = self._on_adapt(copy.deepcopy(hit[0].payload), now)
            return CacheLookup(payload, "memory", hit[1], key)

        hit = self._exact(self._persistent, context, key, now)
        if hit is not None:
            entry, score = hit
            self._memory[key] = CacheEntry(
                key=key,
                context=entry.context,
                payload=entry.payload,
                created_at=entry.created_at,
                expires_at=min(entry.expires_at, now + self.memory_ttl),
                user_id=entry.user_id,
            )
            self._evict(self._memory)
            self._stats.persistent_hits += 1
            logger.info("Analysis cache hit (persistent, promoted): %s", key)
            payload = self._on_adapt(copy.deepcopy(entry.payload), now)
            return CacheLookup(payload, "persistent", score, key)

        best = self._best_similar(context, now)
        if best is not None:
            entry, score = best
            payload = self._on_adapt(copy.deepcopy(entry.payload), now)
            self._stats.similar_hits += 1
            logger.info(
                "Analysis cache hit (similar %.2f): %s -> %s", score, key, entry.key
            )
            return CacheLookup(payload, "similar", score, entry.key)

        self._stats.misses += 1
        logger.debug("Analysis cache miss: %s", key)
        return CacheLookup(key=key)

    def _exact(
        self,
        layer: dict[str, CacheEntry],
        context: CacheContext,
        key: str,
        now: float,
    ) -> tuple[CacheEntry, float] | None:
        entry = layer.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            layer.pop(key, None)
            return None
        if significant_energy_change(entry.context.energy, context.energy):
            logger.info(
                "Energy changed %.1f -> %.1f; invalidating cached analysis %s",
                entry.context.energy,
                context.energy,
                key,
            )
            self._stats.energy_invalidations += 1
            self.invalidate(key)
            return None
        score = exact_similarity(entry.context, context)
        if score < EXACT_SIMILARITY_THRESHOLD:
            return None
        return entry, score

    def _best_similar(
        self, context: CacheContext, now: float
    ) -> tuple[CacheEntry, float] | None:
        candidates: dict[str, CacheEntry] = {**self._persistent, **self._memory}
        best: tuple[CacheEntry, float] | None = None
        for entry in candidates.values():
            if entry.is_expired(now) or entry.age(now) >= self.persistent_ttl:
                continue
            if significant_energy_change(entry.context.energy, context.energy):
                continue
            score = similarity(entry.context, context)
            if best is None or score > best[1]:
                best = (entry, score)
        if best is None:
            return None
        if best[1] <= SIMILAR_MATCH_THRESHOLD:
            return None
        return best

    # -- mutation -------------------------------------------------------

    def put(self, context: CacheContext, payload: dict[str, Any], user_id: str = "") -> str:
        """Store a fresh payload in both layers; returns the cache key."""
        now = self._clock()
        key = context.key()
        self._memory[key] = CacheEntry(
            key, context, copy.deepcopy(payload), now, now + self.memory_ttl, user_id
        )
        persistent_entry = CacheEntry(
            key, context, copy.deepcopy(payload), now, now + self.persistent_ttl, user_id
        )
        self._persistent[key] = persistent_entry
        if self._store is not None:
            self._store.save_entry(persistent_entry)
        self._evict(self._memory)
        self._evict(self._persistent, durable=True)
        return key

    def _evict(self, layer: dict[str, CacheEntry], durable: bool = False) -> None:
        overflow = len(layer) - self.max_entries
        if overflow <= 0:
            return
        oldest = sorted(layer.values(), key=lambda e: e.created_at)[:overflow]
        for entry in oldest:
            layer.pop(entry.key, None)
            if durable and self._store is not None:
                self._store.delete_entry(entry.key)
        logger.debug("Evicted %d cache entries", len(oldest))

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key from every layer, or everything when ``key`` is None."""
        if key is None:
            self.clear()
            return
        self._memory.pop(key, None)
        self._persistent.pop(key, None)
        if self._store is not None:
            self._store.delete_entry(key)

    def clear(self) -> int:
        """Remove all entries; returns how many distinct keys were dropped."""
        removed = len(set(self._memory) | set(self._persistent))
        self._memory.clear()
        self._persistent.clear()
        if self._store is not None:
            self._store.clear()
        logger.info("Analysis cache cleared (%d keys)", removed)
        return removed

    def cleanup(self) -> int:
        """Drop expired entries from every layer; returns the number removed."""
        now = self._clock()
        removed = 0
        for layer in (self._memory, self._persistent):
            for key in [k for k, e in layer.items() if e.is_expired(now)]:
                del layer[key]
                removed += 1
        if self._store is not None:
            self._store.delete_expired(now)
        if removed:
            logger.info("Cache cleanup removed %d expired entries", removed)
        return removed

    def stats(self) -> dict[str, Any]:
        return {
            "memory_hits": self._stats.memory_hits,
            "persistent_hits": self._stats.persistent_hits,
            "similar_hits": self._stats.similar_hits,
            "misses": self._stats.misses,
            "energy_invalidations": self._stats.energy_invalidations,
            "memory_entries": len(self._memory),
            "persistent_entries": len(self._persistent),
            "persistent_storage": self.persistent,
        }
