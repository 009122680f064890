"""
Time-to-live cache for encrypted curve evaluations.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger

from src.fhe.types import EncryptedUint
from src.undo_log import UndoLog

from .types import CurveConfiguration, CurveType


def fingerprint(*parts: Any) -> str:
    """Deterministic hash over plaintext facets."""
    data = "|".join(str(p) for p in parts)
    return hashlib.sha256(data.encode()).hexdigest()[:32]


def configuration_fingerprint(config: CurveConfiguration, input_key: Optional[Any] = None) -> str:
    """
    Cache key from the plaintext facets of a configuration.

    Encrypted coefficients are never part of the key. ``input_key`` is an
    optional plaintext facet of the evaluated input.
    """
    parts = [
        CurveType(config.curve_type).value,
        config.risk.max_leverage,
        config.risk.volatility_factor,
        config.last_update,
        config.strategist,
    ]
    if input_key is not None:
        parts.append(input_key)
    return fingerprint(*parts)


@dataclass
class CachedEvaluation:
    result: EncryptedUint
    timestamp: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp < self.ttl


class EvaluationCache:
    """
    Fingerprint → encrypted result, expiring by TTL.

    Entries are kept in insertion order; every ``put`` drops the expired run
    at the front, so the live set is bounded by TTL times the write rate.
    """

    def __init__(self, ttl_seconds: float = 300.0):
        self.ttl_seconds = float(ttl_seconds)
        self.entries: Dict[str, CachedEvaluation] = {}
        self.hits = 0
        self.misses = 0
        self.journal: Optional[UndoLog] = None

    def _forget(self, key: str) -> None:
        if self.journal is not None:
            self.journal.touch(self.entries, key)
        del self.entries[key]

    def get(self, key: str, now: float) -> Optional[EncryptedUint]:
        entry = self.entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(now):
            self._forget(key)
            logger.debug(f"Cache entry {key[:8]} expired")
            return None
        return entry.result

    def peek(self, key: str, now: float) -> Optional[EncryptedUint]:
        """Fresh result for ``key`` without evicting anything."""
        entry = self.entries.get(key)
        if entry is None or not entry.is_fresh(now):
            return None
        return entry.result

    def sweep(self, now: float) -> int:
        """Drop expired entries from the oldest end; returns how many went."""
        dropped = 0
        while self.entries:
            key, entry = next(iter(self.entries.items()))
            if entry.is_fresh(now):
                break
            self._forget(key)
            dropped += 1
        if dropped:
            logger.debug(f"Swept {dropped} expired cache entries")
        return dropped

    def put(self, key: str, result: EncryptedUint, now: float) -> None:
        self.sweep(now)
        if self.journal is not None:
            self.journal.touch(self.entries, key)
        # re-insert so the entry moves to the newest end
        self.entries.pop(key, None)
        self.entries[key] = CachedEvaluation(result=result, timestamp=now, ttl=self.ttl_seconds)

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def stats(self) -> Dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "entries": len(self.entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": (self.hits / lookups) if lookups else 0.0,
            "ttl_seconds": self.ttl_seconds,
        }
