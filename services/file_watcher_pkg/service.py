"""
FileWatcher Service - Wiring va lifecycle management cho watchdog Observer.

Usage:
    watcher = FileWatcher()
    watcher.start(Path("/path/to/workspace"), on_event=handle_event)
    # ... later
    watcher.stop()
"""

from pathlib import Path
from typing import Any, Callable, Optional

from watchdog.observers import Observer

from core.logging_config import log_error, log_info
from services.file_watcher_pkg.handler import SelectionEventHandler
from services.interfaces.file_watcher_service import (
    FileChangeEvent,
    IFileWatcherService,
)


class FileWatcher(IFileWatcherService):
    """
    Service theo doi thay doi file trong mot thu muc (recursive).

    Chay trong background thread cua watchdog Observer.
    """

    def __init__(self) -> None:
        self._observer: Optional[Any] = None
        self._current_path: Optional[Path] = None

    def start(self, path: Path, on_event: Callable[[FileChangeEvent], None]) -> None:
        """
        Bat dau theo doi mot thu muc.

        Neu dang theo doi thu muc khac, se tu dong stop truoc.
        Path khong hop le duoc log va watcher khong chay.
        """
        self.stop()

        if not path.exists() or not path.is_dir():
            log_error(f"[FileWatcher] Invalid path: {path}")
            return

        try:
            observer = Observer()
            observer.schedule(SelectionEventHandler(on_event), str(path), recursive=True)
            observer.start()
            self._observer = observer
            self._current_path = path
            log_info(f"[FileWatcher] Started watching: {path}")
        except Exception as e:
            log_error(f"[FileWatcher] Failed to start: {e}")
            self.stop()

    def stop(self) -> None:
        observer = self._observer
        if observer is not None:
            try:
                observer.stop()
                observer.join(timeout=2.0)
                log_info(f"[FileWatcher] Stopped watching: {self._current_path}")
            except Exception as e:
                log_error(f"[FileWatcher] Error stopping: {e}")
            finally:
                self._observer = None

        self._current_path = None

    def is_running(self) -> bool:
        observer = self._observer
        return observer is not None and observer.is_alive()

    @property
    def current_path(self) -> Optional[Path]:
        """Duong dan dang duoc theo doi."""
        return self._current_path
