"""Desktop host: open documents on disk and a pywebview window as the surface."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional

from ..config import Config
from ..models.callbacks import HostCallbacks, Unsubscribe
from ..models.document import SourceDocument, language_id_for
from .fs_watcher import FileSystemWatcher

log = logging.getLogger(__name__)


class DesktopHost:
    """Tracks the documents being edited and forwards their events to sessions.

    Listener callbacks always run on ``loop``; file system events arrive on
    the watcher thread and are handed over with ``call_soon_threadsafe``.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        config: Optional[Config] = None,
        watcher: Optional[FileSystemWatcher] = None,
    ):
        self.loop = loop
        self.config = config or Config()
        self.window = None
        self.open_documents: List[Path] = []
        self.focused_path: Optional[Path] = None
        self.watcher = watcher or FileSystemWatcher(self._on_file_event)

        self._change_listeners: List[Callable[[Path], None]] = []
        self._focus_listeners: List[Callable[[], None]] = []

    def set_window(self, window) -> None:
        log.debug("Setting window reference")
        self.window = window

    def start(self) -> None:
        self.watcher.start()

    def close(self) -> None:
        self.watcher.stop()
        self._change_listeners.clear()
        self._focus_listeners.clear()

    def open_document(self, path: Path) -> Path:
        """Open a document for editing and give it focus."""
        path = Path(path).expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"No such document: {path}")

        if path not in self.open_documents:
            self.open_documents.append(path)
            self.watcher.watch(path)
            log.info(f"Opened document {path}")
        self.focus_document(path)
        return path

    def focus_document(self, path: Path) -> None:
        """Make an open document the focused one."""
        path = Path(path).resolve()
        if path not in self.open_documents:
            log.warning(f"Cannot focus {path}: document is not open")
            return
        if path == self.focused_path:
            return

        self.focused_path = path
        log.debug(f"Focus moved to {path.name}")
        for listener in list(self._focus_listeners):
            listener()

    def focused_document(self) -> Optional[SourceDocument]:
        """Read the focused document's current text from disk."""
        if self.focused_path is None:
            return None
        try:
            text = self.read_text(self.focused_path)
        except (OSError, UnicodeDecodeError) as e:
            log.warning(f"Could not read {self.focused_path}: {e}")
            return None
        return SourceDocument(
            path=self.focused_path,
            text=text,
            language_id=language_id_for(self.focused_path, self.config.HTML_EXTENSIONS),
        )

    def focused_document_path(self) -> Optional[Path]:
        return self.focused_path

    def subscribe_document_changed(self, listener: Callable[[Path], None]) -> Unsubscribe:
        self._change_listeners.append(listener)
        return lambda: self._remove(self._change_listeners, listener)

    def subscribe_focus_changed(self, listener: Callable[[], None]) -> Unsubscribe:
        self._focus_listeners.append(listener)
        return lambda: self._remove(self._focus_listeners, listener)

    def as_surface_uri(self, path: Path) -> str:
        return Path(path).resolve().as_uri()

    def file_exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    async def pick_and_open_file(self, start_dir: Optional[Path] = None) -> Optional[Path]:
        """Open file dialog for HTML selection and open the chosen document"""
        if self.window is None:
            log.warning("Cannot open file dialog - window not available")
            return None

        import webview

        log.info("Opening file dialog for HTML selection")
        directory = str(start_dir) if start_dir else ""
        result = await asyncio.to_thread(
            self.window.create_file_dialog,
            webview.FileDialog.OPEN,
            directory=directory,
            allow_multiple=False,
            file_types=tuple(self.config.FILE_DIALOG_TYPES),
        )
        if not result:
            return None

        try:
            return self.open_document(Path(result[0]))
        except FileNotFoundError as e:
            log.error(f"File selection error: {e}")
            return None

    def display(self, html: str) -> None:
        if self.window is None:
            log.warning("Cannot display page - window not available")
            return
        self.window.load_html(html)

    def reveal(self) -> None:
        if self.window is not None:
            self.window.show()

    def callbacks(self) -> HostCallbacks:
        """Bundle this host's primitives for a preview session."""
        return HostCallbacks(
            focused_document=self.focused_document,
            focused_document_path=self.focused_document_path,
            subscribe_document_changed=self.subscribe_document_changed,
            subscribe_focus_changed=self.subscribe_focus_changed,
            as_surface_uri=self.as_surface_uri,
            pick_and_open_file=self.pick_and_open_file,
            file_exists=self.file_exists,
            read_text=self.read_text,
            display=self.display,
            reveal=self.reveal,
        )

    def _on_file_event(self, path: Path) -> None:
        """Schedule change handling on the event loop (watcher thread)."""
        try:
            self.loop.call_soon_threadsafe(self._emit_document_changed, path)
        except RuntimeError:
            log.debug(f"Event loop closed, dropping change of {path}")

    def _emit_document_changed(self, path: Path) -> None:
        if path not in self.open_documents:
            return
        for listener in list(self._change_listeners):
            listener(path)

    @staticmethod
    def _remove(listeners: list, listener) -> None:
        if listener in listeners:
            listeners.remove(listener)
