"""
Result Cache for the Simulator API
Keeps recent simulation results (chiefly no-AI baselines) keyed by their inputs
"""

import hashlib
import json
import logging
import time
from collections import OrderedDict
from threading import Lock

from .config import Config

logger = logging.getLogger(__name__)


class ResultCache:
    """Thread-safe LRU cache with per-entry expiry"""

    def __init__(self, max_size=None, ttl_seconds=None):
        self.max_size = max_size or Config.CACHE_MAX_SIZE
        self.ttl_seconds = ttl_seconds or Config.CACHE_TTL_SECONDS
        self._entries = OrderedDict()   # key -> (stored_at, value)
        self._lock = Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0, "stores": 0}

    @staticmethod
    def make_key(namespace, inputs):
        """Stable key from a namespace and JSON-serializable inputs"""
        payload = json.dumps({"ns": namespace, "inputs": inputs}, sort_keys=True, default=str)
        return hashlib.md5(payload.encode()).hexdigest()

    def get(self, key):
        """Cached value, or None if missing or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None

            stored_at, value = entry
            if time.time() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self._stats["misses"] += 1
                return None

            self._entries.move_to_end(key)
            self._stats["hits"] += 1
            return value

    def put(self, key, value):
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = (time.time(), value)
            self._stats["stores"] += 1
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
                self._stats["evictions"] += 1

    def get_or_compute(self, namespace, inputs, compute):
        """
        Return the cached result for inputs, computing and storing it on a miss.

        Usage:
            baseline = result_cache.get_or_compute("baseline", request_inputs, run_baseline)
        """
        key = self.make_key(namespace, inputs)
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"[Cache] Hit for {namespace}")
            return cached

        value = compute()
        if value is not None:
            self.put(key, value)
        return value

    def clear(self):
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self):
        with self._lock:
            lookups = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / lookups * 100) if lookups else 0
            return {
                "entries": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hit_rate_percent": round(hit_rate, 1),
                **self._stats,
            }


# Shared by the API process
result_cache = ResultCache()
