"""
Selection Event Handler cho File Watcher.

Nhan events tu watchdog, chuyen thanh FileChangeEvent va
goi callback. Folder events bi bo qua (cache chi key theo file).
"""

import os
from typing import Callable

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from core.logging_config import log_debug
from services.interfaces.file_watcher_service import FileChangeEvent


class SelectionEventHandler(FileSystemEventHandler):
    """
    Event handler chuyen watchdog file events sang FileChangeEvent.

    Attributes:
        _on_event: Callback nhan FileChangeEvent
    """

    def __init__(self, on_event: Callable[[FileChangeEvent], None]):
        super().__init__()
        self._on_event = on_event

    def _dispatch_change(self, event: FileSystemEvent, event_type: str) -> None:
        dest = getattr(event, "dest_path", "") or None
        change_event = FileChangeEvent(
            event_type=event_type,
            path=os.fsdecode(event.src_path),
            dest_path=os.fsdecode(dest) if dest else None,
        )
        log_debug(f"[FileWatcher] Event: {event_type} - {change_event.path}")
        self._on_event(change_event)

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileCreatedEvent):
            self._dispatch_change(event, "created")

    def on_deleted(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileDeletedEvent):
            self._dispatch_change(event, "deleted")

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileModifiedEvent):
            self._dispatch_change(event, "modified")

    def on_moved(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileMovedEvent):
            self._dispatch_change(event, "moved")
