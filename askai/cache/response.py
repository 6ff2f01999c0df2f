"""Response cache for generated commands.

Memoizes (prompt, context) -> command so identical requests skip the
provider call. Entries expire after a TTL, the cache is bounded in size,
and the whole cache is snapshotted to a per-user JSON file.

Usage:
    with ResponseCache.from_config(settings) as cache:
        command = cache.get(prompt, context)
        if command is None:
            command = generate(...)
            cache.set(prompt, context, command)
    # snapshot written on exit
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional, TYPE_CHECKING

from askai.config import get_cache_path

if TYPE_CHECKING:
    from askai.config import Settings

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"
SECONDS_PER_DAY = 86400


@dataclass
class CacheEntry:
    """Cached command with creation time (epoch seconds) and hit counter."""
    command: str
    timestamp: float
    hit_count: int = 0


@dataclass
class CacheStats:
    total_entries: int
    total_hits: int
    max_entries: int
    ttl_seconds: int


class ResponseCache:
    """
    Bounded TTL cache of generated commands with a JSON disk snapshot.

    Not thread-safe: callers sharing one instance across asyncio tasks
    guard each get/set call with their own lock (see SessionPool).
    """

    def __init__(
        self,
        ttl_seconds: int,
        max_entries: int,
        cache_file: Optional[Path] = None,
        load: bool = True,
    ):
        """
        Args:
            ttl_seconds: Entry lifetime in seconds
            max_entries: Maximum number of entries held at once
            cache_file: Snapshot path (default: ~/.config/askai/cache.json)
            load: Read the snapshot immediately
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.cache_file = cache_file or get_cache_path()
        self._entries: Dict[str, CacheEntry] = {}
        self._closed = False

        if load:
            self.load()

    @classmethod
    def from_config(
        cls, settings: "Settings", cache_file: Optional[Path] = None
    ) -> "ResponseCache":
        """Build a cache using the TTL (days) and size configured by the user."""
        return cls(
            ttl_seconds=settings.cache_ttl_days * SECONDS_PER_DAY,
            max_entries=settings.cache_max_entries,
            cache_file=cache_file,
        )

    @staticmethod
    def cache_key(prompt: str, context: str) -> str:
        """SHA-256 hex digest of prompt, separator and context."""
        hasher = hashlib.sha256()
        hasher.update(prompt.encode("utf-8"))
        hasher.update(KEY_SEPARATOR.encode("utf-8"))
        hasher.update(context.encode("utf-8"))
        return hasher.hexdigest()

    def get(self, prompt: str, context: str) -> Optional[str]:
        """
        Look up a cached command.

        A live hit bumps the entry's hit count. An expired hit is removed.
        """
        key = self.cache_key(prompt, context)
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = time.time() - entry.timestamp
        if age < self.ttl_seconds:
            entry.hit_count += 1
            return entry.command

        del self._entries[key]
        return None

    def set(self, prompt: str, context: str, command: str) -> None:
        """Store a command, evicting the oldest entry first when full."""
        if len(self._entries) >= self.max_entries:
            self._evict_oldest()

        key = self.cache_key(prompt, context)
        self._entries[key] = CacheEntry(command=command, timestamp=time.time())

    def _evict_oldest(self) -> None:
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
        del self._entries[oldest_key]

    def load(self) -> None:
        """
        Replace memory contents with the snapshot on disk.

        A missing or corrupt snapshot leaves the cache empty.
        """
        self._entries = {}
        if not self.cache_file.exists():
            return

        try:
            with open(self.cache_file, encoding="utf-8") as f:
                data = json.load(f)
            entries = {
                key: CacheEntry(
                    command=str(value["command"]),
                    timestamp=float(value["timestamp"]),
                    hit_count=int(value.get("hit_count", 0)),
                )
                for key, value in data.items()
            }
        except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load cache from {self.cache_file}: {e}")
            return

        self._entries = entries
        logger.debug(f"Loaded {len(entries)} cache entries from {self.cache_file}")

    def save(self) -> bool:
        """
        Write the whole cache to disk.

        Returns False (and logs) on failure instead of raising.
        """
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            payload = {key: asdict(entry) for key, entry in self._entries.items()}
            tmp_path = self.cache_file.with_suffix(".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            tmp_path.replace(self.cache_file)
        except OSError as e:
            logger.warning(f"Failed to save cache to {self.cache_file}: {e}")
            return False
        return True

    def clear(self) -> None:
        """Empty the cache and delete the snapshot file."""
        self._entries.clear()
        try:
            self.cache_file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove cache file {self.cache_file}: {e}")

    def stats(self) -> CacheStats:
        return CacheStats(
            total_entries=len(self._entries),
            total_hits=sum(entry.hit_count for entry in self._entries.values()),
            max_entries=self.max_entries,
            ttl_seconds=self.ttl_seconds,
        )

    def close(self) -> None:
        """Write the final snapshot. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if not self.save():
            logger.warning("Cache snapshot not written; changes from this run are lost")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __enter__(self) -> "ResponseCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
