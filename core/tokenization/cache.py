"""
Fingerprint cache cho item estimates, thread-safe.

- Key: CacheKey(model, path, range, fingerprint)
- Value: ItemEstimate (immutable)
- Khong co eviction: cache song theo session, chi bi xoa qua
  invalidate_path() hoac clear() (doi model / heuristic)
- Mot lock duy nhat cho toan bo dict; workload nho (hang chuc files)
"""

import threading
from typing import Dict, NamedTuple, Optional

from config.model_config import TokenModel
from core.selection.types import ItemEstimate, LineRange
from core.tokenization.file_reader import FileFingerprint


class CacheKey(NamedTuple):
    model: TokenModel
    path: str
    range: Optional[LineRange]
    fingerprint: Optional[FileFingerprint]


class FingerprintCache:
    """
    Cache ItemEstimate theo (model, path, range, fingerprint).

    Entry da insert khong bi sua. Hai lan miss dong thoi cho cung key
    co the cung tinh lai; lan ghi sau cung thang (ket qua giong nhau).
    """

    def __init__(self) -> None:
        self._store: Dict[CacheKey, ItemEstimate] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[ItemEstimate]:
        with self._lock:
            return self._store.get(key)

    def put(self, key: CacheKey, estimate: ItemEstimate) -> None:
        with self._lock:
            self._store[key] = estimate

    def invalidate_path(self, path: str) -> int:
        """
        Xoa moi entry cua path, bat ke model/range/fingerprint.

        Args:
            path: File path can xoa

        Returns:
            So entries da xoa
        """
        with self._lock:
            stale = [key for key in self._store if key.path == path]
            for key in stale:
                del self._store[key]
            return len(stale)

    def clear(self) -> None:
        """Xoa toan bo cache. Thread-safe."""
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
