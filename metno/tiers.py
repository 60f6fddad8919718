"""
Cache tiers for forecast documents.

Provides a common interface for storing and retrieving one document plus
its freshness metadata per cache key, with multiple backend
implementations. Tiers are chained by TieredCache, fastest first.
"""
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from metno.errors import CacheTierError
from metno.freshness import CacheInfo


def _identity(value):
    return value


class CacheTier(ABC):
    """Abstract base class for cache tiers."""

    @abstractmethod
    def get(self, key: str) -> tuple[Optional[Any], Optional[CacheInfo]]:
        """
        Retrieve a document and its freshness metadata.

        Args:
            key: Cache key of the document

        Returns:
            (entry, info), or (None, None) if nothing is stored

        Raises:
            CacheTierError: If the backing store can't be read
        """
        pass

    @abstractmethod
    def set(self, key: str, entry: Any, info: CacheInfo) -> None:
        """
        Store a document, replacing whatever was stored for the key.

        Raises:
            CacheTierError: If the backing store can't be written
        """
        pass

    @abstractmethod
    def clear(self, key: str) -> None:
        """
        Remove a document. Clearing a key that isn't stored is not an error.

        Raises:
            CacheTierError: If the backing store can't be modified
        """
        pass

    @property
    def name(self) -> str:
        return type(self).__name__


class MemoryTier(CacheTier):
    """In-process tier. Fastest, lost when the process exits."""

    def __init__(self):
        self._entries: dict[str, tuple[Any, CacheInfo]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[Optional[Any], Optional[CacheInfo]]:
        with self._lock:
            return self._entries.get(key, (None, None))

    def set(self, key: str, entry: Any, info: CacheInfo) -> None:
        with self._lock:
            self._entries[key] = (entry, info)

    def clear(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self):
        return len(self._entries)


class DiskTier(CacheTier):
    """
    Local filesystem tier.

    Each key is stored as two JSON files in the cache directory: the
    document (metno-<key>.json) and its freshness record
    (metno-<key>-info.json). A document without a readable freshness
    record is never served.

    Uses atomic writes (write to a temp file, then rename) for each file.
    The info file is removed before the document is replaced, so a crash
    part way through leaves a document without info, which reads as a miss.

    With no directory configured every operation does nothing.
    """

    def __init__(self, cache_dir: Optional[str],
                 encode: Callable[[Any], Any] = _identity,
                 decode: Callable[[Any], Any] = _identity):
        """
        Initialize the disk tier.

        Args:
            cache_dir: Directory for cache files; empty or None disables the tier
            encode: Converts an entry to a JSON-serializable value
            decode: Converts the stored JSON value back to an entry
        """
        self.cache_dir = cache_dir
        self.encode = encode
        self.decode = decode

    @property
    def enabled(self) -> bool:
        return bool(self.cache_dir)

    def filenames(self, key: str) -> tuple[str, str]:
        """Return the (document, info) paths for a key."""
        return (
            os.path.join(self.cache_dir, f'metno-{key}.json'),
            os.path.join(self.cache_dir, f'metno-{key}-info.json'),
        )

    def get(self, key: str) -> tuple[Optional[Any], Optional[CacheInfo]]:
        if not self.enabled:
            return None, None

        data_path, info_path = self.filenames(key)

        data = self._read_json(data_path)
        if data is None:
            return None, None

        try:
            info_data = self._read_json(info_path)
        except CacheTierError:
            # Unusable freshness record, the document can't be judged
            return None, None
        if info_data is None:
            return None, None

        try:
            info = CacheInfo.from_json(info_data)
        except (KeyError, TypeError, ValueError, AttributeError):
            return None, None

        try:
            entry = self.decode(data)
        except ValueError as e:
            # Includes DecodeError
            raise CacheTierError(f"cached document '{data_path}' is unusable: {e}") from e

        return entry, info

    def set(self, key: str, entry: Any, info: CacheInfo) -> None:
        if not self.enabled:
            return

        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            raise CacheTierError(f"failed creating cache directory '{self.cache_dir}': {e}") from e

        data_path, info_path = self.filenames(key)

        try:
            payload = json.dumps(self.encode(entry), indent=1)
        except (TypeError, ValueError) as e:
            raise CacheTierError(f'failed converting the document for {key} to json: {e}') from e

        self._remove(info_path)
        self._write_atomic(data_path, payload)
        self._write_atomic(info_path, json.dumps(info.to_json(), indent=1))

    def clear(self, key: str) -> None:
        if not self.enabled:
            return

        for path in self.filenames(key):
            self._remove(path)

    @staticmethod
    def _read_json(path: str) -> Optional[Any]:
        """Read a JSON file, returning None if it doesn't exist."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheTierError(f"error reading the file '{path}': {e}") from e
        except ValueError as e:
            raise CacheTierError(f"error converting the file '{path}' to json: {e}") from e

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CacheTierError(f"failed removing '{path}': {e}") from e

    def _write_atomic(self, path: str, text: str) -> None:
        """Atomic write using temporary file + rename."""
        # The temp file must be in the same directory for the rename to be atomic
        try:
            fd, temp_path = tempfile.mkstemp(dir=self.cache_dir, prefix='.tmp_', suffix='')
        except OSError as e:
            raise CacheTierError(f"failed storing '{path}': {e}") from e

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(text)
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise CacheTierError(f"failed storing '{path}': {e}") from e


class NoOpTier(CacheTier):
    """Tier that never stores anything, so every lookup misses."""

    def get(self, key: str) -> tuple[Optional[Any], Optional[CacheInfo]]:
        return None, None  # Always miss, forcing a fresh fetch

    def set(self, key: str, entry: Any, info: CacheInfo) -> None:
        pass

    def clear(self, key: str) -> None:
        pass
