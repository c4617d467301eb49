"""Tab data model for the preview surface."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class TabData:
    """Encapsulates all state for a single preview tab (data only, no UI elements)"""

    tab_id: str
    title: str
    source_path: Optional[Path] = None
    content: str = ""

    def is_bound(self) -> bool:
        """Check if tab is bound to a source document"""
        return self.source_path is not None

    def has_content(self) -> bool:
        """Check if tab has synchronized content worth rendering"""
        return self.is_bound() and bool(self.content)
