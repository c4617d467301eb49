"""File system watcher for monitoring edits to open documents."""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

log = logging.getLogger(__name__)


class DocumentChangeHandler(FileSystemEventHandler):
    """Handles file system events for the watched directories."""

    def __init__(self, callback: Callable[[Path], None]):
        """
        Initialize the handler.

        Args:
            callback: Function called with the path of each changed file
        """
        self.callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Handle any file system event."""
        if event.is_directory or event.event_type not in (
            "modified",
            "created",
            "moved",
            "closed",
        ):
            return

        # Editors that save atomically replace the file by a rename
        target = getattr(event, "dest_path", "") or event.src_path
        if isinstance(target, bytes):
            target = target.decode()
        self.callback(Path(target).resolve())


class FileSystemWatcher:
    """Manages a watchdog observer over the directories of open documents."""

    def __init__(self, on_change: Callable[[Path], None]):
        """
        Initialize the watcher.

        Args:
            on_change: Called from the observer thread with each changed path
        """
        self.on_change = on_change
        self.observer: Optional[Observer] = None
        self.handler = DocumentChangeHandler(self.on_change)
        self._watches: Dict[Path, Optional[ObservedWatch]] = {}

    def start(self) -> None:
        """Start the observer thread."""
        if self.observer:
            return

        self.observer = Observer()
        for directory in self._watches:
            self._watches[directory] = self.observer.schedule(
                self.handler, str(directory), recursive=False
            )
        self.observer.start()
        log.debug(f"File watcher started on {len(self._watches)} directories")

    def watch(self, path: Path) -> None:
        """
        Watch the directory containing a document.

        Args:
            path: The document path whose directory should be watched
        """
        directory = path.parent
        if directory in self._watches or not directory.is_dir():
            return

        if self.observer:
            self._watches[directory] = self.observer.schedule(
                self.handler, str(directory), recursive=False
            )
        else:
            self._watches[directory] = None
        log.debug(f"Watching {directory}")

    def stop(self) -> None:
        """Stop watching and clean up resources."""
        if self.observer:
            self.observer.stop()
            if self.observer.is_alive():
                self.observer.join()
            self.observer = None
        self._watches.clear()

    def __del__(self):
        """Ensure cleanup on deletion."""
        self.stop()
