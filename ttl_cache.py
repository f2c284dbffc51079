#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

Clock = Callable[[], float]

class TTLCache:
    """In-process key/value cache where each entry is fresh for `ttl_seconds`.

    The clock is injectable so tests can move time by hand. There is no
    locking; two concurrent refreshes simply overwrite each other.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def set(self, key: Hashable, value: Any):
        self._entries[key] = (value, self._clock())

    def is_expired(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return True
        return (self._clock() - entry[1]) >= self.ttl_seconds

    def get(self, key: Hashable, default: Any = None) -> Any:
        if self.is_expired(key):
            return default
        return self._entries[key][0]

    def peek(self, key: Hashable, default: Any = None) -> Any:
        # stale values are still handed back
        entry = self._entries.get(key)
        return default if entry is None else entry[0]

    def age(self, key: Hashable) -> Optional[float]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._clock() - entry[1]
