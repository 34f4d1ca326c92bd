"""
File Watcher Package.

Export cac symbols chinh:
- FileWatcher: watchdog Observer lifecycle
- CacheInvalidationWatcher: file events -> engine.invalidate_path()
- FileChangeEvent: data class cho su kien
"""

from services.file_watcher_pkg.invalidation import CacheInvalidationWatcher
from services.file_watcher_pkg.service import FileWatcher
from services.interfaces.file_watcher_service import FileChangeEvent

__all__ = [
    "CacheInvalidationWatcher",
    "FileWatcher",
    "FileChangeEvent",
]
