"""
CacheInvalidationWatcher - Noi file watcher voi engine.invalidate_path().

Engine chi tu phat hien thay doi qua fingerprint (length + mtime).
Watcher nay cung cap "independent knowledge" rang file da doi:
moi event modified/deleted/moved/created deu xoa cache cua path.

Cache key dung path nhu caller da chon (da normpath), nen moi event
invalidate absolute path, path tuong doi so voi thu muc dang theo doi
va path tuong doi so voi working directory.
"""

import os
from pathlib import Path
from typing import Optional

from services.file_watcher_pkg.service import FileWatcher
from services.interfaces.file_watcher_service import FileChangeEvent
from services.interfaces.token_estimation_service import ITokenEstimationService


class CacheInvalidationWatcher:
    """Theo doi mot thu muc va invalidate cache cua engine khi file doi."""

    def __init__(self, watcher: Optional[FileWatcher] = None) -> None:
        self._watcher = watcher or FileWatcher()
        self._engine: Optional[ITokenEstimationService] = None
        self._root: Optional[Path] = None

    def start(self, root: Path, engine: ITokenEstimationService) -> None:
        """
        Bat dau theo doi root va invalidate cache cua engine.

        Args:
            root: Thu muc workspace
            engine: Engine can invalidate
        """
        self._engine = engine
        self._root = root
        self._watcher.start(root, on_event=self.handle_event)
        if not self._watcher.is_running():
            self._engine = None
            self._root = None

    def stop(self) -> None:
        self._watcher.stop()
        self._engine = None
        self._root = None

    def is_running(self) -> bool:
        return self._watcher.is_running()

    @property
    def current_path(self) -> Optional[Path]:
        return self._watcher.current_path

    def handle_event(self, event: FileChangeEvent) -> None:
        engine = self._engine
        if engine is None:
            return
        for path in (event.path, event.dest_path):
            if path is None:
                continue
            for candidate in self._path_variants(path):
                engine.invalidate_path(candidate)

    def _path_variants(self, path: str) -> set[str]:
        variants = {path}
        bases = [os.getcwd()]
        if self._root is not None:
            bases.append(os.fspath(self._root))
        for base in bases:
            try:
                variants.add(os.path.relpath(path, base))
            except ValueError:
                # Khac drive tren Windows
                pass
        return variants
