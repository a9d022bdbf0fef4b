# Copyright (c) Syntropy Systems
"""Bounded in-memory cache of encoded error-log payloads.

Payloads are kept gzip-compressed and evicted in insertion order once
``max_size`` entries are held.
"""
from __future__ import annotations

import gzip
import logging
import threading
import zlib
from collections import OrderedDict

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 8


class PayloadCache:
    """Compressed payloads keyed by job id."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            msg = f"max_size must be positive, got {max_size}"
            raise ValueError(msg)
        self.max_size = max_size
        self._entries: OrderedDict[int, bytes] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def has(self, key: int) -> bool:
        return key in self._entries

    def get(self, key: int) -> bytes | None:
        """Return the decompressed payload, or None if absent or corrupt."""
        with self._lock:
            item = self._entries.get(key)
        if item is None:
            return None
        try:
            return gzip.decompress(item)
        except (OSError, EOFError, zlib.error):
            logger.warning("Dropping corrupt cache entry for job %d", key)
            self.remove(key)
            return None

    def set(self, key: int, value: bytes) -> None:
        """Store a payload. An existing entry for ``key`` is kept as is."""
        compressed = gzip.compress(value)
        with self._lock:
            if key in self._entries:
                return
            if len(self._entries) >= self.max_size:
                outdated, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cached payload for job %d", outdated)
            self._entries[key] = compressed

    def remove(self, key: int) -> None:
        with self._lock:
            _ = self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
