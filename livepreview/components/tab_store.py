"""Ordered store of preview tabs with an active-tab pointer."""

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Iterator, List, Optional

from ..models.tab_data import TabData

log = logging.getLogger(__name__)


class TabSessionStore:
    """Holds the open tabs of one preview session.

    Tabs are kept in insertion order, keyed by id. The store is never empty
    between public calls: it starts with one tab and closing the last tab
    replaces it with a fresh unbound one.
    """

    def __init__(self, id_prefix: str = "tab", title_prefix: str = "Tab"):
        self._tabs: "OrderedDict[str, TabData]" = OrderedDict()
        self._active_id: str = ""
        self._counter: int = 0
        self._id_prefix = id_prefix
        self._title_prefix = title_prefix

        self.create_tab()

    def __len__(self) -> int:
        return len(self._tabs)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._tabs

    def __iter__(self) -> Iterator[TabData]:
        return iter(list(self._tabs.values()))

    @property
    def tabs(self) -> List[TabData]:
        """Tabs in display order."""
        return list(self._tabs.values())

    @property
    def active_id(self) -> str:
        return self._active_id

    def get(self, tab_id: str) -> Optional[TabData]:
        return self._tabs.get(tab_id)

    def create_tab(self) -> str:
        """Append a new unbound tab, make it active and return its id."""
        self._counter += 1
        tab = TabData(
            tab_id=f"{self._id_prefix}-{self._counter}",
            title=f"{self._title_prefix} {self._counter}",
        )
        self._tabs[tab.tab_id] = tab
        self._active_id = tab.tab_id
        log.debug(f"Created {tab.tab_id} ({len(self._tabs)} open)")
        return tab.tab_id

    def switch_tab(self, tab_id: str) -> bool:
        """Activate a tab; unknown ids are ignored."""
        if tab_id not in self._tabs:
            log.debug(f"Ignoring switch to unknown tab {tab_id!r}")
            return False
        self._active_id = tab_id
        return True

    def close_tab(self, tab_id: str) -> bool:
        """Remove a tab, keeping a valid active tab; unknown ids are ignored."""
        if tab_id not in self._tabs:
            log.debug(f"Ignoring close of unknown tab {tab_id!r}")
            return False

        index = list(self._tabs).index(tab_id)
        del self._tabs[tab_id]
        log.debug(f"Closed {tab_id} ({len(self._tabs)} open)")

        if self._active_id == tab_id:
            if self._tabs:
                remaining = list(self._tabs)
                self._active_id = remaining[max(0, index - 1)]
            else:
                self.create_tab()
        return True

    def active_tab(self) -> Optional[TabData]:
        return self._tabs.get(self._active_id)

    def bind_and_update(
        self, tab_id: str, source_path: Path, title: str, content: str
    ) -> bool:
        """Overwrite a tab's binding fields; unknown ids are ignored."""
        tab = self._tabs.get(tab_id)
        if tab is None:
            log.debug(f"Ignoring update of unknown tab {tab_id!r}")
            return False
        tab.source_path = source_path
        tab.title = title
        tab.content = content
        return True

    def dispose(self) -> None:
        """Drop every tab. The store is unusable afterwards."""
        self._tabs.clear()
        self._active_id = ""
