"""Debounced synchronization of the focused document into the active tab."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from ..models.callbacks import HostCallbacks
from ..models.tab_data import TabData
from .tab_store import TabSessionStore

log = logging.getLogger(__name__)


class SyncScheduler:
    """Decides when source changes reach the active tab.

    Edits re-arm a single debounce timer; focus switches synchronize at once.
    Must only be driven from the thread running ``loop``.
    """

    def __init__(
        self,
        store: TabSessionStore,
        callbacks: HostCallbacks,
        loop: asyncio.AbstractEventLoop,
        on_synced: Optional[Callable[[TabData], None]] = None,
        quiet_period: float = 0.3,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Tab store receiving synchronized content
            callbacks: Host primitives used to read the focused document
            loop: Event loop that owns the debounce timer
            on_synced: Called with the updated tab after each synchronization
            quiet_period: Debounce quiet period in seconds
        """
        self.store = store
        self.callbacks = callbacks
        self.loop = loop
        self.on_synced = on_synced
        self.quiet_period = quiet_period

        self._pending: Optional[asyncio.TimerHandle] = None
        self._disposed = False

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def on_document_changed(self, path: Path) -> None:
        """Handle a text change of some document."""
        if self._disposed:
            return

        # Path only; the text is read once, when the timer fires.
        if self.callbacks.focused_document_path() != path:
            return

        self._arm()

    def on_focus_changed(self) -> None:
        """Handle the user switching which document is being edited."""
        if self._disposed:
            return
        self.sync_now()

    def sync_now(self) -> bool:
        """Copy the focused document into the active tab immediately."""
        if self._disposed:
            return False

        document = self.callbacks.focused_document()
        if document is None:
            log.debug("No focused document, skipping sync")
            return False
        if not document.is_html():
            log.debug(
                f"Focused document {document.file_name} is {document.language_id}, skipping sync"
            )
            return False

        tab = self.store.active_tab()
        if tab is None:
            return False

        self.store.bind_and_update(
            tab.tab_id, document.path, document.file_name, document.text
        )
        log.debug(f"Synced {document.file_name} into {tab.tab_id} ({len(document.text)} chars)")

        if self.on_synced:
            self.on_synced(tab)
        return True

    def dispose(self) -> None:
        """Cancel any pending update; later events are ignored."""
        self._disposed = True
        self._cancel()

    def _arm(self) -> None:
        self._cancel()
        self._pending = self.loop.call_later(self.quiet_period, self._fire)

    def _cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        self.sync_now()
