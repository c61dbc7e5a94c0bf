"""Memoized analyses, keyed by FEN string."""

import logging
import threading
from collections import OrderedDict
from typing import Callable

from src.analysis.models import Analysis

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 4096


class AnalysisCache:
    """
    Least-recently-used mapping FEN -> Analysis
    ---

    `get_or_compute()` evaluates a position at most once for as long as the entry lives in the cache.
    The lock is held during the computation, so two threads asking for the same position cannot both compute it.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, Analysis] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, fen: str, compute: Callable[[str], Analysis]) -> Analysis:
        with self._lock:
            cached = self._entries.get(fen)
            if cached is not None:
                self._entries.move_to_end(fen)
                self.hits += 1
                logger.debug("Analysis cache hit for %s", fen)
                return cached

            self.misses += 1
            logger.debug("Analysis cache miss for %s", fen)
            analysis = compute(fen)
            self._entries[fen] = analysis
            if len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted analysis for %s", evicted)
            return analysis

    def get(self, fen: str) -> Analysis | None:
        with self._lock:
            return self._entries.get(fen)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, fen: object) -> bool:
        return fen in self._entries

    def __len__(self) -> int:
        return len(self._entries)
