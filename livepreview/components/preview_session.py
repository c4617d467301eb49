"""One preview surface: its tabs, synchronization and command handling."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from ..config import Config
from ..models.callbacks import HostCallbacks, Unsubscribe
from ..models.commands import (
    AddTabCommand,
    CloseTabCommand,
    SelectFileCommand,
    SwitchTabCommand,
    parse_command,
)
from .resource_resolver import ResourceResolver
from .sandbox_renderer import SandboxRenderer
from .sync_scheduler import SyncScheduler
from .tab_store import TabSessionStore

log = logging.getLogger(__name__)


class PreviewSession:
    """Encapsulates all state and wiring for a single preview surface."""

    def __init__(
        self,
        session_id: str,
        root_location: Optional[Path],
        callbacks: HostCallbacks,
        loop: asyncio.AbstractEventLoop,
        config: Optional[Config] = None,
    ) -> None:
        config = config or Config()

        self.session_id = session_id
        self.root_location = root_location
        self.callbacks = callbacks
        self.on_disposed: Optional[Callable[["PreviewSession"], None]] = None

        self.store = TabSessionStore(
            id_prefix=config.TAB_ID_PREFIX, title_prefix=config.TAB_TITLE_PREFIX
        )
        self.resolver = ResourceResolver(
            as_surface_uri=callbacks.as_surface_uri,
            file_exists=callbacks.file_exists,
            read_text=callbacks.read_text,
            inline_scripts=config.INLINE_SCRIPTS,
        )
        self.renderer = SandboxRenderer(
            self.resolver, sandbox_policy=config.SANDBOX_POLICY
        )
        self.scheduler = SyncScheduler(
            self.store,
            callbacks,
            loop,
            on_synced=lambda tab: self.render(),
            quiet_period=config.DEBOUNCE_SECONDS,
        )

        self._disposed = False
        self._subscriptions: List[Unsubscribe] = [
            callbacks.subscribe_document_changed(self.scheduler.on_document_changed),
            callbacks.subscribe_focus_changed(self.scheduler.on_focus_changed),
        ]

        log.info(f"Preview session {session_id} created (root: {root_location})")
        if not self.scheduler.sync_now():
            self.render()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add_new_tab(self) -> str:
        """Append a new tab, make it active and redraw."""
        tab_id = self.store.create_tab()
        self.render()
        return tab_id

    def refresh_active_tab(self) -> bool:
        """Synchronize the active tab from the focused document now."""
        return self.scheduler.sync_now()

    def switch_tab(self, tab_id: str) -> None:
        if self.store.switch_tab(tab_id):
            self.render()

    def close_tab(self, tab_id: str) -> None:
        if self.store.close_tab(tab_id):
            self.render()

    async def select_file(self) -> Optional[Path]:
        """Let the user pick an HTML file and preview it in the active tab."""
        focused_before = self.callbacks.focused_document_path()
        path = await self.callbacks.pick_and_open_file(self.root_location)
        if path is None:
            log.info("No file selected")
            return None
        if self._disposed:
            return path

        log.info(f"File selected for preview: {path}")
        # A focus change has already synchronized through on_focus_changed.
        if self.callbacks.focused_document_path() == focused_before:
            self.scheduler.sync_now()
        return path

    async def handle_message(self, message: Any) -> None:
        """Dispatch a message posted by the preview surface.

        Raises:
            InvalidCommandError: if the message is not a known command
        """
        command = parse_command(message)
        if self._disposed:
            log.debug(f"Session {self.session_id} disposed, dropping {command.command}")
            return

        log.debug(f"Session {self.session_id} handling {command.command}")
        if isinstance(command, SelectFileCommand):
            await self.select_file()
        elif isinstance(command, SwitchTabCommand):
            self.switch_tab(command.tab_id)
        elif isinstance(command, CloseTabCommand):
            self.close_tab(command.tab_id)
        elif isinstance(command, AddTabCommand):
            self.add_new_tab()

    def render(self) -> str:
        """Redraw the whole surface and return the markup shown."""
        if self._disposed:
            return ""
        page = self.renderer.render_page(self.store.tabs, self.store.active_id)
        self.callbacks.display(page)
        return page

    def reveal(self) -> None:
        if not self._disposed:
            self.callbacks.reveal()

    def dispose(self) -> None:
        """Cancel pending work, release subscriptions and drop all tabs."""
        if self._disposed:
            return
        self._disposed = True

        self.scheduler.dispose()
        while self._subscriptions:
            unsubscribe = self._subscriptions.pop()
            unsubscribe()
        self.store.dispose()
        log.info(f"Preview session {self.session_id} disposed")

        if self.on_disposed:
            self.on_disposed(self)
