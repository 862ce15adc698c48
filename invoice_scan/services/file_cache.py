"""
In-process cache for uploaded PDF files.

Holds raw bytes between upload and extraction/preview. Entries live
for the lifetime of the process unless a TTL or capacity bound is
configured; nothing is persisted across restarts.
"""

import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field

from .normalization import utc_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedFile:
    """An uploaded file held in memory."""

    file_id: str
    buffer: bytes
    file_name: str
    uploaded_at: str = field(default_factory=utc_timestamp)
    stored_at: float = field(default_factory=time.monotonic, repr=False)

    @property
    def size(self) -> int:
        return len(self.buffer)


class FileCache:
    """
    Keyed store of uploaded files.

    Each put generates a fresh UUID, so concurrent requests never share
    a key and no locking is needed.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Drop entries older than this. None keeps them forever.
            max_entries: Evict the oldest entries beyond this count. None is unbounded.
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: OrderedDict[str, CachedFile] = OrderedDict()

    def put(self, data: bytes, file_name: str) -> CachedFile:
        """Store file bytes under a generated file id and return the entry."""
        entry = CachedFile(file_id=str(uuid.uuid4()), buffer=data, file_name=file_name)
        self._entries[entry.file_id] = entry

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.info("Evicted cached file %s (capacity %d)", evicted, self.max_entries)

        logger.info("Cached %s as %s (%d bytes)", file_name, entry.file_id, len(data))
        return entry

    def get(self, file_id: str) -> CachedFile | None:
        """Return the cached file, or None if unknown or expired."""
        entry = self._entries.get(file_id)
        if entry is None:
            return None
        if self.ttl_seconds is not None and time.monotonic() - entry.stored_at > self.ttl_seconds:
            self._entries.pop(file_id, None)
            logger.info("Cached file %s expired", file_id)
            return None
        return entry

    def __contains__(self, file_id: str) -> bool:
        return self.get(file_id) is not None

    def __len__(self) -> int:
        return len(self._entries)
