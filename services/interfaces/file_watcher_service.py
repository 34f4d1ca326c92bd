"""
Interfaces cho File Watcher Service.

Dinh nghia contracts cho:
- IFileWatcherService: Start/stop theo doi file system
- FileChangeEvent: Su kien thay doi file
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional


@dataclass
class FileChangeEvent:
    """
    Dai dien cho mot su kien thay doi file.

    Attributes:
        event_type: Loai su kien ('created', 'deleted', 'modified', 'moved')
        path: Duong dan cua file bi thay doi (src path cho 'moved')
        dest_path: Duong dan moi, chi co voi 'moved'
    """

    event_type: str
    path: str
    dest_path: Optional[str] = None


class IFileWatcherService(ABC):
    """
    Interface cho dich vu theo doi file.

    Moi implementation phai dam bao:
    - Auto-stop khi switch sang path moi
    - Background thread cho event listening
    """

    @abstractmethod
    def start(self, path: Path, on_event: Callable[[FileChangeEvent], None]) -> None:
        """
        Bat dau theo doi mot thu muc (recursive).

        Args:
            path: Thu muc can theo doi
            on_event: Callback cho moi file event
        """
        ...

    @abstractmethod
    def stop(self) -> None:
        """Dung theo doi."""
        ...

    @abstractmethod
    def is_running(self) -> bool:
        """Kiem tra watcher co dang chay khong."""
        ...
